"""Session Vault — Secrets and stashed content scoped to one script run.

Security Note (Threat Model):
    Registered secrets live sealed in process memory for the session's
    lifetime; a memory dump of the process together with the session id
    is enough to recover them. SSH private keys are written to disk, with
    owner-only permissions, only when a script reads them, and are
    removed with the session directory.
"""

from .config import SessionConfig
from .models import (
    Secret,
    SecretView,
    SSHPrivateKeySecret,
    SSHPrivateKeyView,
    TextSecret,
    TextView,
    UserPasswordSecret,
    UserPasswordView,
)
from .registry import SecretRegistry
from .stash import ContentStash
from .session import Session, SessionState

__all__ = [
    "Session",
    "SessionState",
    "SessionConfig",
    "SecretRegistry",
    "ContentStash",
    "Secret",
    "SecretView",
    "TextSecret",
    "SSHPrivateKeySecret",
    "UserPasswordSecret",
    "TextView",
    "SSHPrivateKeyView",
    "UserPasswordView",
]
