"""Bindings a script engine registers to reach the session.

Every session error is logged and re-raised as :class:`ScriptError`, the
one exception type a host has to turn into a script-visible exception.
"""
import logging
from typing import Any, Callable, NoReturn

from .exceptions import SessionError
from .vault.session import Session

logger = logging.getLogger("automation.host")


class ScriptError(Exception):
    """Failure surfaced to the running script."""


def raise_for_script(error: BaseException, *context: str) -> NoReturn:
    """Log ``error`` and raise it as a :class:`ScriptError`.

    Args:
        error: The error to surface.
        context: Optional words prefixed to the message.
    """
    if context:
        msg = f"{' '.join(context)} {error}"
    else:
        msg = str(error)
    logger.error(msg)
    raise ScriptError(msg) from error


class SessionBindings:
    """Script-facing wrapper of a :class:`Session`.

    Values are converted to plain types a script engine can map:
    secret views become dicts keyed by script field names.
    """

    def __init__(self, session: Session):
        self.session = session

    def add_text(self, secret_id: str, text: str) -> None:
        try:
            self.session.add_text(secret_id, text)
        except (SessionError, ValueError) as err:
            raise_for_script(err, "addText")

    def add_ssh_private_key(
        self,
        secret_id: str,
        user: str,
        private_key: str,
        passphrase: str = "",
    ) -> None:
        try:
            self.session.add_ssh_private_key(secret_id, user, private_key, passphrase)
        except (SessionError, ValueError) as err:
            raise_for_script(err, "addSSHWithPrivate")

    def add_user_password(self, secret_id: str, user: str, password: str) -> None:
        try:
            self.session.add_user_password(secret_id, user, password)
        except (SessionError, ValueError) as err:
            raise_for_script(err, "addUserPassword")

    def get_secret(self, secret_id: str) -> dict:
        try:
            return self.session.get_secret(secret_id).to_script()
        except SessionError as err:
            raise_for_script(err, "getSecret")

    def save(self, path: str) -> str:
        try:
            return self.session.save(path)
        except SessionError as err:
            raise_for_script(err, "save")

    def load(self, handle: str) -> bytes:
        try:
            return self.session.load(handle)
        except SessionError as err:
            raise_for_script(err, "load")

    def close(self) -> None:
        try:
            self.session.close()
        except SessionError as err:
            raise_for_script(err, "close")

    def exports(self) -> dict[str, Callable[..., Any]]:
        """Functions to install in the script's global scope, by script name."""
        return {
            "addText": self.add_text,
            "addSSHWithPrivate": self.add_ssh_private_key,
            "addUserPassword": self.add_user_password,
            "getSecret": self.get_secret,
            "save": self.save,
            "load": self.load,
        }
