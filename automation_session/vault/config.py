"""
Session Configuration — Validated settings for the session directory tree.

Reads overrides from environment variables:
    AUTOMATION_SESSION_ROOT = <path of the session root directory>
    AUTOMATION_SESSION_DIR_MODE = <octal mode, e.g. 700>
    AUTOMATION_SESSION_KEY_MODE = <octal mode, e.g. 600>
    AUTOMATION_SESSION_CIPHER = aesgcm | chacha20

Security Note:
    Modes granting any group or other permission are rejected; the
    session tree holds private key material.
"""
import os
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..conf import (
    SESSION_ROOT,
    STASH_DIRNAME,
    SECRETS_DIRNAME,
    DIR_MODE,
    KEY_FILE_MODE,
    CIPHER_BACKEND,
)

logger = logging.getLogger("automation.session")


def read_mode(name: str, default: int) -> int:
    """Read an octal permission mode from the environment variable ``name``.

    Accepts ``700``, ``0700`` and ``0o700``.

    Returns:
        The parsed mode, or ``default`` if the variable is unset or empty.

    Raises:
        ValueError: If the value is not a valid octal number.
    """
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw, 8)
    except ValueError:
        raise ValueError(
            f"{name} must be an octal permission mode, got {raw!r}"
        ) from None


def _owner_only(mode: int) -> int:
    if mode & 0o077:
        raise ValueError(
            f"Mode {oct(mode)} grants access beyond the owning user"
        )
    return mode


class SessionConfig(BaseModel):
    """Validated session configuration."""

    root_dir: Path = Field(default=Path(SESSION_ROOT))
    stash_dirname: str = Field(default=STASH_DIRNAME, min_length=1)
    secrets_dirname: str = Field(default=SECRETS_DIRNAME, min_length=1)
    dir_mode: int = Field(default=DIR_MODE, ge=0o100, le=0o777)
    key_file_mode: int = Field(default=KEY_FILE_MODE, ge=0o400, le=0o777)
    cipher_backend: str = Field(default=CIPHER_BACKEND)

    model_config = {"frozen": True, "validate_default": True}

    @field_validator("root_dir")
    @classmethod
    def absolute_root(cls, v: Path) -> Path:
        """Resolve the root to an absolute path at load time."""
        return Path(os.path.abspath(v))

    @field_validator("stash_dirname", "secrets_dirname")
    @classmethod
    def plain_name(cls, v: str) -> str:
        """Subdirectory names must be single path components."""
        if os.sep in v or (os.altsep and os.altsep in v) or v in (".", ".."):
            raise ValueError(f"Invalid subdirectory name: {v!r}")
        return v

    @field_validator("dir_mode", "key_file_mode")
    @classmethod
    def validate_mode(cls, v: int) -> int:
        """Only owner permission bits are allowed."""
        return _owner_only(v)

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @property
    def stash_dir(self) -> Path:
        return self.root_dir / self.stash_dirname

    @property
    def secrets_dir(self) -> Path:
        return self.root_dir / self.secrets_dirname

    @classmethod
    def from_env(cls, root_dir: Optional[str] = None) -> "SessionConfig":
        """Create SessionConfig by loading values from environment.

        Args:
            root_dir: Explicit root directory; wins over the environment.

        Returns:
            Populated SessionConfig instance.
        """
        root = root_dir or os.environ.get("AUTOMATION_SESSION_ROOT", SESSION_ROOT)
        config = cls(
            root_dir=root,
            dir_mode=read_mode("AUTOMATION_SESSION_DIR_MODE", DIR_MODE),
            key_file_mode=read_mode("AUTOMATION_SESSION_KEY_MODE", KEY_FILE_MODE),
            cipher_backend=os.environ.get("AUTOMATION_SESSION_CIPHER", CIPHER_BACKEND),
        )
        logger.debug("Session config loaded: root=%s", config.root_dir)
        return config
