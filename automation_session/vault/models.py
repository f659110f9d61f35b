"""Secret variants as registered, and the views handed back to callers.

A stored ``Secret`` is one of three frozen models tagged by ``kind``.
Reading it produces the matching ``SecretView``; only the SSH variant
differs in shape, carrying the path of a key file instead of the key.
"""
from pathlib import Path
from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # fields replaced by a mask in repr() and str()
    _masked: ClassVar[frozenset] = frozenset()

    def __repr_args__(self):
        for name, value in super().__repr_args__():
            if name in self._masked:
                value = "**********"
            yield name, value


# --- Stored variants ---

class TextSecret(_Frozen):
    _masked: ClassVar[frozenset] = frozenset({"text"})

    kind: Literal["text"] = "text"
    text: str


class SSHPrivateKeySecret(_Frozen):
    _masked: ClassVar[frozenset] = frozenset({"private_key", "passphrase"})

    kind: Literal["ssh"] = "ssh"
    user: str
    private_key: str
    passphrase: str = ""


class UserPasswordSecret(_Frozen):
    _masked: ClassVar[frozenset] = frozenset({"password"})

    kind: Literal["userpass"] = "userpass"
    user: str
    password: str


Secret = Annotated[
    Union[TextSecret, SSHPrivateKeySecret, UserPasswordSecret],
    Field(discriminator="kind"),
]

secret_adapter: TypeAdapter = TypeAdapter(Secret)


# --- Views ---

class _View(_Frozen):
    def to_script(self) -> dict:
        """Mapping handed to the script engine, keyed by script field names."""
        data = self.model_dump(by_alias=True, mode="json", exclude={"kind"})
        data["type"] = self.kind
        return data


class TextView(_View):
    _masked: ClassVar[frozenset] = frozenset({"text"})

    kind: Literal["text"] = "text"
    text: str


class SSHPrivateKeyView(_View):
    _masked: ClassVar[frozenset] = frozenset({"passphrase"})

    kind: Literal["ssh"] = "ssh"
    user: str
    private_key_file: Path = Field(alias="privateKeyFile")
    passphrase: str = ""


class UserPasswordView(_View):
    _masked: ClassVar[frozenset] = frozenset({"password"})

    kind: Literal["userpass"] = "userpass"
    user: str
    password: str


SecretView = Union[TextView, SSHPrivateKeyView, UserPasswordView]
