"""
Field Cipher - per-author encryption of story text columns

Format (must stay byte-compatible with data already at rest):
    key   = SHA-256(utf8(key_string))          -> AES-256
    mode  = CBC, IV = 16 zero bytes, PKCS7 padding
    text  = base64(ciphertext)

The IV is fixed, so equal plaintexts under the same key give equal
ciphertexts. Changing that changes the stored format; see DESIGN.md.
"""

import base64
import binascii
import hashlib
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

DECRYPT_ERROR = "Error: Cannot Decrypt"

_ZERO_IV = bytes(16)
_BLOCK_BITS = algorithms.AES.block_size


def _derive_key(key_string: str) -> bytes:
    return hashlib.sha256(key_string.encode("utf-8")).digest()


def _cipher(key_string: str) -> Cipher:
    return Cipher(algorithms.AES(_derive_key(key_string)), modes.CBC(_ZERO_IV))


def encrypt(plaintext: Optional[str], key: str) -> Optional[str]:
    """Encrypt a text field. None and "" pass through untouched."""
    if not plaintext:
        return plaintext

    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = _cipher(key).encryptor()
    raw = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(raw).decode("ascii")


def decrypt(ciphertext: Optional[str], key: str) -> Optional[str]:
    """
    Decrypt a text field.

    Returns DECRYPT_ERROR instead of raising when the value is not valid
    base64, not block aligned, has broken padding or does not decode as
    UTF-8 (wrong key or corrupted column).
    """
    if not ciphertext:
        return ciphertext

    try:
        raw = base64.b64decode(ciphertext, validate=True)
        if not raw or len(raw) % 16:
            return DECRYPT_ERROR

        decryptor = _cipher(key).decryptor()
        padded = decryptor.update(raw) + decryptor.finalize()

        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        data = unpadder.update(padded) + unpadder.finalize()
        return data.decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError):
        return DECRYPT_ERROR


def is_decrypt_error(value: Optional[str]) -> bool:
    return value == DECRYPT_ERROR
