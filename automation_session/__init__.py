"""Automation Session.

Secrets and stashed files for the lifetime of one automation script run.
"""
from .version import __version__
from .exceptions import (
    SessionError,
    NotFound,
    SecretNotFound,
    StashNotFound,
    InvalidPath,
    CopyFailed,
    ReadFailed,
    SessionClosed,
    CleanupFailed,
)
from .vault import (
    Session,
    SessionState,
    SessionConfig,
    SecretRegistry,
    ContentStash,
)
from .host import ScriptError, SessionBindings

__all__ = (
    "__version__",
    "Session",
    "SessionState",
    "SessionConfig",
    "SecretRegistry",
    "ContentStash",
    "SessionBindings",
    "ScriptError",
    "SessionError",
    "NotFound",
    "SecretNotFound",
    "StashNotFound",
    "InvalidPath",
    "CopyFailed",
    "ReadFailed",
    "SessionClosed",
    "CleanupFailed",
)
