"""Default settings for Automation Session.

Every value can be overridden from the environment; see
``automation_session.vault.config.SessionConfig.from_env``.
"""
import os

SESSION_ROOT = os.environ.get("AUTOMATION_SESSION_ROOT", "./.automation")
STASH_DIRNAME = "stash"
SECRETS_DIRNAME = "secrets"

# Only the owning user may enter the session tree or read key files.
DIR_MODE = 0o700
KEY_FILE_MODE = 0o600

CIPHER_BACKEND = os.environ.get("AUTOMATION_SESSION_CIPHER", "aesgcm")

MAX_SECRET_ID_LENGTH = 255
