"""
SecretRegistry — Credentials a script may reference by identifier.

Provides:
- ``add_text`` / ``add_ssh_private_key`` / ``add_user_password`` — register
  (or replace) a secret under an identifier
- ``get(secret_id)`` — return the caller-facing view of a secret
- ``remove`` / ``keys()`` / ``exists()`` — manage registered identifiers

Key material is only written to disk when an SSH secret is read: every
``get`` rewrites ``<secrets-dir>/<secret_id>`` with owner-only permissions
and returns its path. Removing that directory is the session's job.

Security Note:
    Never log secret values. Only log identifiers and file paths.
    Registered secrets are held sealed in memory (see ``crypto.Sealer``).
"""
import os
import logging
import threading
from pathlib import Path
from typing import Union

from cryptography.exceptions import InvalidTag

from ..conf import KEY_FILE_MODE, MAX_SECRET_ID_LENGTH
from ..exceptions import SecretNotFound, SessionClosed
from ..fsutils import write_private_file, remove_tree
from .crypto import Sealer, serialize_value, deserialize_value
from .models import (
    Secret,
    SecretView,
    SSHPrivateKeySecret,
    SSHPrivateKeyView,
    TextSecret,
    TextView,
    UserPasswordSecret,
    UserPasswordView,
    secret_adapter,
)

logger = logging.getLogger("automation.session")


class SecretRegistry:
    """In-memory registry of secrets for one session.

    Args:
        secrets_dir: Directory that receives materialized key files.
        session_id: Seed for the key sealing the registered secrets.
        key_file_mode: Permission bits of materialized key files.
        cipher_backend: ``aesgcm`` or ``chacha20``.
    """

    def __init__(
        self,
        secrets_dir: Union[str, os.PathLike],
        session_id: str,
        key_file_mode: int = KEY_FILE_MODE,
        cipher_backend: str = "aesgcm",
    ):
        self._dir = Path(secrets_dir)
        self._mode = key_file_mode
        self._sealer = Sealer(session_id, cipher_backend)
        self._entries: dict[str, bytes] = {}  # secret_id -> sealed payload
        self._lock = threading.RLock()
        self._closed = False

    def __repr__(self) -> str:
        return f'<SecretRegistry dir={self._dir} secrets={len(self._entries)}>'

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_id(self, secret_id: str) -> None:
        """Validate a secret identifier; it also names a file on disk.

        Raises:
            ValueError: If the identifier is empty, too long, or not a
                plain file name.
        """
        if not secret_id:
            raise ValueError("Secret id cannot be empty")
        if len(secret_id) > MAX_SECRET_ID_LENGTH:
            raise ValueError(
                f"Secret id cannot exceed {MAX_SECRET_ID_LENGTH} characters"
            )
        if (
            os.sep in secret_id
            or (os.altsep and os.altsep in secret_id)
            or "\x00" in secret_id
            or secret_id in (".", "..")
        ):
            raise ValueError(f"Secret id is not a valid file name: {secret_id!r}")

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosed("Secret registry is closed")

    def _store(self, secret_id: str, secret: Secret) -> None:
        self._validate_id(secret_id)
        payload = serialize_value(secret.model_dump())
        sealed = self._sealer.seal(payload, secret_id.encode("utf-8"))
        with self._lock:
            self._check_open()
            self._entries[secret_id] = sealed
        logger.debug("Secret registered: id=%s kind=%s", secret_id, secret.kind)

    def _load(self, secret_id: str) -> Secret:
        sealed = self._entries.get(secret_id)
        if sealed is None:
            raise SecretNotFound(f"Secret not found: {secret_id}")
        try:
            payload = self._sealer.open(sealed, secret_id.encode("utf-8"))
        except (InvalidTag, ValueError) as err:
            logger.error("Secret id=%s could not be unsealed", secret_id)
            raise SecretNotFound(f"Secret not found: {secret_id}") from err
        return secret_adapter.validate_python(deserialize_value(payload))

    def key_path(self, secret_id: str) -> Path:
        """Path an SSH secret is materialized to."""
        self._validate_id(secret_id)
        return self._dir / secret_id

    def _materialize(self, secret_id: str, secret: SSHPrivateKeySecret) -> Path:
        path = self.key_path(secret_id)
        try:
            write_private_file(path, secret.private_key, self._mode)
        except OSError as err:
            # filesystem detail is not exposed to callers
            logger.error(
                "Cannot write key file for secret id=%s: %s", secret_id, err
            )
            raise SecretNotFound(f"Secret not found: {secret_id}") from err
        logger.debug("Key file written: id=%s path=%s", secret_id, path)
        return path

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_text(self, secret_id: str, text: str) -> None:
        """Register a text secret, replacing anything under ``secret_id``."""
        self._store(secret_id, TextSecret(text=text))

    def add_ssh_private_key(
        self,
        secret_id: str,
        user: str,
        private_key: str,
        passphrase: str = "",
    ) -> None:
        """Register an SSH private key.

        No file is written here; the key is materialized by ``get``.
        """
        self._store(
            secret_id,
            SSHPrivateKeySecret(
                user=user, private_key=private_key, passphrase=passphrase
            ),
        )

    def add_user_password(self, secret_id: str, user: str, password: str) -> None:
        """Register a username/password pair."""
        self._store(secret_id, UserPasswordSecret(user=user, password=password))

    def get(self, secret_id: str) -> SecretView:
        """Return the view of the secret registered under ``secret_id``.

        Text and user/password secrets are returned as they were
        registered. An SSH secret has its private key (re)written to the
        secrets directory on every call, and the view carries that path.

        Raises:
            SecretNotFound: If nothing is registered under ``secret_id``,
                or if the key file could not be written.
            SessionClosed: If the registry has been closed.
        """
        with self._lock:
            self._check_open()
            secret = self._load(secret_id)
            match secret:
                case TextSecret():
                    return TextView(text=secret.text)
                case UserPasswordSecret():
                    return UserPasswordView(
                        user=secret.user, password=secret.password
                    )
                case SSHPrivateKeySecret():
                    path = self._materialize(secret_id, secret)
                    return SSHPrivateKeyView(
                        user=secret.user,
                        private_key_file=path,
                        passphrase=secret.passphrase,
                    )
                case _:
                    raise TypeError(
                        f"Unknown secret variant: {type(secret).__name__}"
                    )

    def remove(self, secret_id: str) -> None:
        """Forget a secret and delete its key file, if one was written.

        Raises:
            SecretNotFound: If nothing is registered under ``secret_id``.
        """
        with self._lock:
            self._check_open()
            if self._entries.pop(secret_id, None) is None:
                raise SecretNotFound(f"Secret not found: {secret_id}")
            remove_tree(self.key_path(secret_id))
        logger.debug("Secret removed: id=%s", secret_id)

    def keys(self) -> list[str]:
        """List registered identifiers."""
        with self._lock:
            self._check_open()
            return list(self._entries.keys())

    def exists(self, secret_id: str) -> bool:
        with self._lock:
            self._check_open()
            return secret_id in self._entries

    def __contains__(self, secret_id: object) -> bool:
        return self.exists(str(secret_id))

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Drop every registered secret. Later calls raise ``SessionClosed``."""
        with self._lock:
            self._entries.clear()
            self._closed = True
