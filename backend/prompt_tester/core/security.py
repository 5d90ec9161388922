"""
Security helpers for API credential storage.

Secrets are encrypted with AES-256-GCM. Each value carries its own scrypt
salt and IV and is stored as ``salt:iv:tag:ciphertext`` (all base64).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import re
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from prompt_tester.core.config import get_settings
from prompt_tester.core.logger import setup_logger

logger = setup_logger(__name__)

_IV_LENGTH = 16
_SALT_LENGTH = 32
_TAG_LENGTH = 16
_KEY_LENGTH = 32
_DEFAULT_PHRASE = "prompt-tester-default-key-change-me"
_BASE64_PART = re.compile(r"^[A-Za-z0-9+/]+=*$")


def _scrypt(secret: bytes, salt: bytes) -> bytes:
    return hashlib.scrypt(secret, salt=salt, n=16384, r=8, p=1, dklen=_KEY_LENGTH)


def _master_key() -> bytes:
    env_key = get_settings().ENCRYPTION_KEY
    if env_key and len(env_key) >= 32:
        return env_key[:32].encode("utf-8")
    # ENCRYPTION_KEY should always be set outside local development
    return _scrypt(_DEFAULT_PHRASE.encode("utf-8"), b"salt")


def encrypt_secret(plaintext: str) -> str:
    """Encrypt a secret, returning ``salt:iv:tag:ciphertext``."""
    salt = secrets.token_bytes(_SALT_LENGTH)
    iv = secrets.token_bytes(_IV_LENGTH)
    key = _scrypt(_master_key(), salt)

    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-_TAG_LENGTH], sealed[-_TAG_LENGTH:]

    return ":".join(
        base64.b64encode(part).decode("ascii") for part in (salt, iv, tag, ciphertext)
    )


def decrypt_secret(stored: str) -> str:
    """
    Decrypt a value produced by encrypt_secret.

    Values that are not in the four-part format, or that fail to decrypt,
    are returned verbatim so legacy plaintext records stay usable.
    """
    parts = stored.split(":")
    if len(parts) != 4:
        return stored

    try:
        salt, iv, tag, ciphertext = (base64.b64decode(part, validate=True) for part in parts)
        key = _scrypt(_master_key(), salt)
        return AESGCM(key).decrypt(iv, ciphertext + tag, None).decode("utf-8")
    except (InvalidTag, binascii.Error, ValueError) as e:
        logger.warning(f"Decryption failed, returning stored value: {type(e).__name__}")
        return stored


def is_encrypted(value: str) -> bool:
    """Check if a string looks like an encrypted secret."""
    parts = value.split(":")
    if len(parts) != 4:
        return False
    return all(_BASE64_PART.match(part) for part in parts)


def mask_api_key(key: str) -> str:
    """Mask an API key for display (first 8 and last 4 characters)."""
    if len(key) <= 12:
        return "****" + key[-4:]
    return f"{key[:8]}...{key[-4:]}"
