#!/usr/bin/env python3
"""
Password encryption helpers using cryptography's AES-256-GCM.
- generate_key() -> fresh 32-byte key (one per stored password)
- encrypt(plaintext, key) -> base64(nonce || ciphertext || tag)
- decrypt(blob, key) -> plaintext
A new random nonce is drawn for every encrypt call.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from kaya.errors import EncryptionError

KEY_LEN = 32
NONCE_LEN = 12
TAG_LEN = 16


def generate_key() -> bytes:
    return AESGCM.generate_key(bit_length=KEY_LEN * 8)


def _cipher(key: bytes) -> AESGCM:
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_LEN:
        raise EncryptionError(f"Failed to create key: expected {KEY_LEN} key bytes")
    return AESGCM(bytes(key))


def encrypt(plaintext: str, key: bytes) -> str:
    aead = _cipher(key)
    nonce = os.urandom(NONCE_LEN)
    sealed = aead.encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(blob: str, key: bytes) -> str:
    aead = _cipher(key)
    try:
        data = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionError(f"Invalid encrypted data: {e}") from e
    if len(data) < NONCE_LEN + TAG_LEN:
        raise EncryptionError("Invalid encrypted data")
    nonce, sealed = data[:NONCE_LEN], data[NONCE_LEN:]
    try:
        plain = aead.decrypt(nonce, sealed, None)
    except InvalidTag:
        raise EncryptionError("Failed to decrypt: authentication failed") from None
    try:
        return plain.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncryptionError(f"Invalid UTF-8: {e}") from None
