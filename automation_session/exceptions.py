"""Error kinds raised by the secret registry, the content stash and the session."""
from typing import Optional


class SessionError(Exception):
    """Base class for every Automation Session error."""

    def __init__(self, message: Optional[str] = None, *args):
        self.message = message or self.__class__.__doc__
        super().__init__(self.message, *args)

    def __str__(self) -> str:
        return self.message


class NotFound(SessionError, LookupError):
    """Nothing is registered under the given key."""


class SecretNotFound(NotFound):
    """Secret not found."""


class StashNotFound(NotFound):
    """Stash entry not found."""


class InvalidPath(SessionError, ValueError):
    """Path cannot be resolved."""


class CopyFailed(SessionError):
    """Content could not be copied."""


class ReadFailed(SessionError):
    """Stash entry exists but could not be read."""


class SessionClosed(SessionError, RuntimeError):
    """Session is already closed."""


class CleanupFailed(SessionError):
    """Session directory could not be removed."""
