"""
Secret Sealing — Keeps registered secrets encrypted while held in memory.

Each session derives its own key: HKDF(session_id, "automation-secrets")
and seals every secret payload with an AEAD cipher:
    [nonce 12B][encrypted_payload + tag 16B]

Nothing sealed here is ever written to disk; the key dies with the session.

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import logging
from typing import Any

import orjson
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

logger = logging.getLogger("automation.session")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256

_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


def derive_key(seed: bytes, context: str) -> bytes:
    """Derive a 32-byte encryption key using HKDF-SHA256.

    Args:
        seed: Input key material (the session id bytes).
        context: Context string for domain separation.

    Returns:
        32-byte derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


class Sealer:
    """Seals and opens secret payloads with a per-session key."""

    def __init__(self, session_id: str, backend: str = "aesgcm"):
        try:
            cipher_cls = _CIPHERS[backend]
        except KeyError:
            raise ValueError(f"Unsupported cipher backend: {backend}") from None
        key = derive_key(session_id.encode("utf-8"), "automation-secrets")
        self._cipher = cipher_cls(key)
        self.backend = backend

    def seal(self, plaintext: bytes, associated: bytes = None) -> bytes:
        nonce = os.urandom(NONCE_SIZE)
        return nonce + self._cipher.encrypt(nonce, plaintext, associated)

    def open(self, sealed: bytes, associated: bytes = None) -> bytes:
        """Decrypt a sealed payload.

        Raises:
            ValueError: If the payload is truncated.
            cryptography.exceptions.InvalidTag: If it was tampered with or
                sealed under a different session or identifier.
        """
        _min = NONCE_SIZE + TAG_SIZE
        if len(sealed) < _min:
            raise ValueError(
                f"sealed payload too short: {len(sealed)} bytes "
                f"(minimum {_min})"
            )
        return self._cipher.decrypt(
            sealed[:NONCE_SIZE], sealed[NONCE_SIZE:], associated
        )


def serialize_value(value: Any) -> bytes:
    """Serialize a mapping of secret fields to bytes for sealing."""
    return orjson.dumps(value)


def deserialize_value(data: bytes) -> Any:
    return orjson.loads(data)
