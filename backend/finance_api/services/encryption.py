# finance_api/services/encryption.py
"""AES-256-GCM helpers for Plaid access tokens at rest.

Ciphertexts are stored as `iv:authTag:encryptedData`, all hex, with a random
16-byte IV per encryption. The key is a 32-byte value given as 64 hex chars.
"""
import os
from typing import Any, Dict

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from finance_api.core.errors import EncryptionError

IV_LENGTH = 16
TAG_LENGTH = 16


def _key_bytes(key: str) -> bytes:
    if not key or len(key) != 64:
        raise EncryptionError("Encryption key must be a 32-byte hex string (64 characters)")
    try:
        return bytes.fromhex(key)
    except ValueError as exc:
        raise EncryptionError("Encryption key must be hex encoded") from exc


def encrypt(text: str, key: str) -> str:
    """Encrypt `text`; returns `iv:authTag:encryptedData`."""
    aes = AESGCM(_key_bytes(key))
    iv = os.urandom(IV_LENGTH)
    # cryptography returns ciphertext with the tag appended
    sealed = aes.encrypt(iv, text.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"


def decrypt(encrypted_text: str, key: str) -> str:
    """Decrypt a value produced by `encrypt`. Raises EncryptionError on tampering or a wrong key."""
    aes = AESGCM(_key_bytes(key))
    parts = (encrypted_text or "").split(":")
    if len(parts) != 3:
        raise EncryptionError("Invalid encrypted text format")
    try:
        iv, tag, ciphertext = (bytes.fromhex(p) for p in parts)
    except ValueError as exc:
        raise EncryptionError("Invalid encrypted text format") from exc
    try:
        plain = aes.decrypt(iv, ciphertext + tag, None)
    except InvalidTag as exc:
        raise EncryptionError("Unable to decrypt value (wrong key or corrupted data)") from exc
    return plain.decode("utf-8")


def validate_encryption_key(key: str) -> None:
    """Check the configured key is present, well-formed and round-trips a test value."""
    if not key:
        raise EncryptionError(
            "PLAID_ENCRYPTION_KEY is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
        )
    if len(key) != 64:
        raise EncryptionError(
            f"PLAID_ENCRYPTION_KEY must be a 32-byte hex string (64 characters). Current length: {len(key)}"
        )
    if decrypt(encrypt("test", key), key) != "test":
        raise EncryptionError("Encryption key validation failed")


def reencrypt_access_tokens(document: Dict[str, Any], old_key: str, new_key: str) -> int:
    """
    Re-encrypt every plaid_items[].access_token from old_key to new_key in place.
    All tokens are decrypted before any is rewritten, so a bad old key leaves the document untouched.
    Returns the number of tokens rotated.
    """
    items = document.get("plaid_items", [])
    plain_tokens = [decrypt(item["access_token"], old_key) for item in items]
    _key_bytes(new_key)
    for item, token in zip(items, plain_tokens):
        item["access_token"] = encrypt(token, new_key)
    return len(items)


__all__ = ["encrypt", "decrypt", "validate_encryption_key", "reencrypt_access_tokens"]
