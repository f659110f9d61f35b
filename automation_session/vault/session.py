"""
Session — Owner of a run's temporary directory tree and of the stores on it.

Provides:
- construction — wipe any stale tree left by a crashed run, then create
  ``<root>/stash`` and ``<root>/secrets`` with owner-only permissions
- ``secrets`` (:class:`SecretRegistry`) and ``stash`` (:class:`ContentStash`)
- ``close()`` — remove the whole tree; also run on every exit from a
  ``with Session() as session:`` block

Lifecycle: ``UNINITIALIZED -> READY -> CLOSED``. Once closed, every
registry and stash operation raises :class:`SessionClosed`.
"""
import os
import uuid
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..exceptions import CleanupFailed, SessionClosed, SessionError
from ..fsutils import make_private_dir, remove_tree
from .config import SessionConfig
from .models import SecretView
from .registry import SecretRegistry
from .stash import ContentStash

logger = logging.getLogger("automation.session")


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class Session:
    """A single script run's secrets and stash.

    Args:
        config: Directory layout and permissions; read from the
            environment when omitted.
    """

    def __init__(self, config: Optional[SessionConfig] = None):
        self.state = SessionState.UNINITIALIZED
        self.config = config or SessionConfig.from_env()
        self.session_id = uuid.uuid4().hex
        self.root: Path = self.config.root_dir
        self.stash_dir: Path = self.config.stash_dir
        self.secrets_dir: Path = self.config.secrets_dir
        self._provision()
        self.secrets = SecretRegistry(
            self.secrets_dir,
            self.session_id,
            key_file_mode=self.config.key_file_mode,
            cipher_backend=self.config.cipher_backend,
        )
        self.stash = ContentStash(self.stash_dir, exclude=[self.root])
        self.state = SessionState.READY
        logger.info("Session %s ready at %s", self.session_id, self.root)

    def __repr__(self) -> str:
        return (
            f'<Session [{self.state.value}] id={self.session_id} '
            f'root={self.root}>'
        )

    def _provision(self) -> None:
        """Replace whatever is at the root with a fresh, empty tree.

        Raises:
            SessionError: If the tree cannot be removed or created.
        """
        try:
            if remove_tree(self.root):
                logger.warning("Removed stale session directory %s", self.root)
            make_private_dir(self.root, self.config.dir_mode)
            make_private_dir(self.stash_dir, self.config.dir_mode)
            make_private_dir(self.secrets_dir, self.config.dir_mode)
        except OSError as err:
            logger.error("Cannot prepare session directory %s: %s", self.root, err)
            raise SessionError(
                f"Cannot prepare session directory {self.root}: {err}"
            ) from err

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def _check_open(self) -> None:
        if self.state is not SessionState.READY:
            raise SessionClosed(f"Session {self.session_id} is closed")

    def close(self) -> None:
        """Close both stores and remove the session tree.

        Calling it again is a no-op. The session is CLOSED even when the
        tree could not be removed; the next session wipes it on startup.

        Raises:
            CleanupFailed: If the directory tree could not be removed.
        """
        if self.state is SessionState.CLOSED:
            logger.debug("Session %s already closed", self.session_id)
            return
        self.secrets.close()
        self.stash.close()
        self.state = SessionState.CLOSED
        try:
            remove_tree(self.root)
        except OSError as err:
            logger.error(
                "Cannot remove session directory %s: %s", self.root, err
            )
            raise CleanupFailed(
                f"Cannot remove session directory {self.root}: {err}"
            ) from err
        logger.info("Session %s closed", self.session_id)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        try:
            self.close()
        except CleanupFailed as err:
            # keep the body's exception as the one that propagates
            logger.error("Cleanup after failed run: %s", err)

    # ------------------------------------------------------------------
    # Host-facing API
    # ------------------------------------------------------------------

    def add_text(self, secret_id: str, text: str) -> None:
        self._check_open()
        self.secrets.add_text(secret_id, text)

    def add_ssh_private_key(
        self,
        secret_id: str,
        user: str,
        private_key: str,
        passphrase: str = "",
    ) -> None:
        self._check_open()
        self.secrets.add_ssh_private_key(secret_id, user, private_key, passphrase)

    def add_user_password(self, secret_id: str, user: str, password: str) -> None:
        self._check_open()
        self.secrets.add_user_password(secret_id, user, password)

    def get_secret(self, secret_id: str) -> SecretView:
        self._check_open()
        return self.secrets.get(secret_id)

    def save(self, source: Union[str, os.PathLike]) -> str:
        self._check_open()
        return self.stash.save(source)

    def load(self, handle: str) -> bytes:
        self._check_open()
        return self.stash.load(handle)
