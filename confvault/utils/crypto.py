"""AES-256-GCM secret encryption/decryption.

Blobs are stored as ``<nonce hex>:<ciphertext+tag hex>``. A fresh random nonce
is drawn on every call, so encrypting the same plaintext twice never yields the
same blob.
"""

from __future__ import annotations

import hashlib
import os
import re
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from confvault.config import settings
from confvault.errors import DecryptionError

NONCE_SIZE = 12
_SEPARATOR = ":"
_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def derive_key(raw: str) -> bytes:
    """Turn the configured key into 32 key bytes.

    A 64-character hex string is used as-is; anything else is stretched with
    SHA-256 so a passphrase still maps to the same key on every start.
    """
    if not raw:
        raise ValueError("encryption key must not be empty")
    if _HEX_KEY_RE.match(raw):
        return bytes.fromhex(raw)
    return hashlib.sha256(raw.encode()).digest()


class SecretCodec:
    def __init__(self, key: bytes) -> None:
        if len(key) != 32:
            raise ValueError("AES-256 requires a 32-byte key")
        self._aead = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return nonce.hex() + _SEPARATOR + ciphertext.hex()

    def decrypt(self, blob: str) -> str:
        nonce_hex, sep, ciphertext_hex = blob.partition(_SEPARATOR)
        if not sep:
            raise DecryptionError("Malformed ciphertext blob")
        try:
            nonce = bytes.fromhex(nonce_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError:
            raise DecryptionError("Malformed ciphertext blob") from None
        if len(nonce) != NONCE_SIZE:
            raise DecryptionError("Malformed ciphertext blob")
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise DecryptionError("Ciphertext does not match the configured key") from None
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionError("Decrypted value is not valid UTF-8") from None


@lru_cache(maxsize=1)
def get_codec() -> SecretCodec:
    return SecretCodec(derive_key(settings.encryption_key))


def encrypt(plaintext: str) -> str:
    return get_codec().encrypt(plaintext)


def decrypt(ciphertext: str) -> str:
    return get_codec().decrypt(ciphertext)
