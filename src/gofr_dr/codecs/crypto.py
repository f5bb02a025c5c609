"""AES-256-GCM encryption of backup payloads

Stored layout: base64(iv[16] || tag[16] || ciphertext). The key is derived
from a passphrase with scrypt and a fixed salt, so every artifact written
with the same passphrase shares one key; existing artifacts depend on this.
"""

import asyncio
import base64
import binascii
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from gofr_dr.exceptions import ConfigurationError, IntegrityError

KDF_SALT = b"salt"
KEY_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16

# scrypt cost parameters; changing them changes the derived key
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1


def _require_passphrase(passphrase: Optional[str]) -> str:
    if not passphrase:
        raise ConfigurationError("Encryption key not configured")
    return passphrase


def derive_key(passphrase: str) -> bytes:
    """Derive the 256-bit AES key for a passphrase.

    Nothing is cached here; CryptoCodec keeps the derived key for its own
    lifetime so the passphrase itself is not retained.
    """
    kdf = Scrypt(salt=KDF_SALT, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(_require_passphrase(passphrase).encode("utf-8"))


def encrypt(plaintext: bytes, passphrase: Optional[str]) -> bytes:
    """Encrypt bytes and return the base64 stored representation.

    Args:
        plaintext: Bytes to encrypt
        passphrase: Passphrase the key is derived from

    Returns:
        ASCII bytes of base64(iv || tag || ciphertext)

    Raises:
        ConfigurationError: If no passphrase is given
    """
    return encrypt_with_key(plaintext, derive_key(_require_passphrase(passphrase)))


def encrypt_with_key(plaintext: bytes, key: bytes) -> bytes:
    """encrypt() with an already derived key."""
    iv = os.urandom(IV_LENGTH)
    # AESGCM appends the tag to the ciphertext
    sealed = AESGCM(key).encrypt(iv, plaintext, None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return base64.b64encode(iv + tag + ciphertext)


def decrypt(blob: bytes, passphrase: Optional[str]) -> bytes:
    """Decrypt a blob produced by encrypt().

    Raises:
        ConfigurationError: If no passphrase is given
        IntegrityError: If the blob is malformed or fails authentication
    """
    return decrypt_with_key(blob, derive_key(_require_passphrase(passphrase)))


def decrypt_with_key(blob: bytes, key: bytes) -> bytes:
    """decrypt() with an already derived key."""
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise IntegrityError("Encrypted payload is not valid base64", details={"error": str(e)}) from e

    if len(raw) < IV_LENGTH + TAG_LENGTH:
        raise IntegrityError("Encrypted payload is truncated", details={"size": len(raw)})

    iv = raw[:IV_LENGTH]
    tag = raw[IV_LENGTH:IV_LENGTH + TAG_LENGTH]
    ciphertext = raw[IV_LENGTH + TAG_LENGTH:]

    try:
        return AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as e:
        raise IntegrityError("Encrypted payload failed authentication") from e


class CryptoCodec:
    """Async codec bound to one passphrase.

    The key is derived on first use and kept; the passphrase is dropped
    once the key exists. Key derivation and cipher work run in a worker
    thread.
    """

    def __init__(self, passphrase: Optional[str]):
        self._passphrase: Optional[str] = _require_passphrase(passphrase)
        self._key: Optional[bytes] = None

    async def _get_key(self) -> bytes:
        if self._key is None:
            self._key = await asyncio.to_thread(derive_key, self._passphrase)
            self._passphrase = None
        return self._key

    async def encrypt(self, plaintext: bytes) -> bytes:
        key = await self._get_key()
        return await asyncio.to_thread(encrypt_with_key, plaintext, key)

    async def decrypt(self, blob: bytes) -> bytes:
        key = await self._get_key()
        return await asyncio.to_thread(decrypt_with_key, blob, key)

    def __repr__(self) -> str:
        return "CryptoCodec(passphrase=***)"
