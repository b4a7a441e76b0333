"""AES-256-CBC helpers for hoster payloads.

Hosters exchange base64-encoded, PKCS7-padded AES-CBC ciphertext.  Keys
and IVs are site constants owned by the extractor modules.
"""

from __future__ import annotations

import base64
import binascii

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from extractarr.domain.exceptions import PayloadDecodeError

_BLOCK_BITS = 128


def aes_cbc_encrypt(plaintext: str, key: bytes, iv: bytes) -> str:
    """Encrypt *plaintext* (UTF-8) and return base64 ciphertext."""
    padder = padding.PKCS7(_BLOCK_BITS).padder()
    data = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    encrypted = encryptor.update(data) + encryptor.finalize()
    return base64.b64encode(encrypted).decode("ascii")


def aes_cbc_decrypt(ciphertext_b64: str, key: bytes, iv: bytes) -> str:
    """Decrypt base64 *ciphertext_b64* and return the UTF-8 plaintext.

    Raises:
        PayloadDecodeError: Invalid base64, wrong key/IV or bad padding.
    """
    try:
        data = base64.b64decode(ciphertext_b64.strip(), validate=False)
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(data) + decryptor.finalize()
        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        plain = unpadder.update(padded) + unpadder.finalize()
        return plain.decode("utf-8")
    except (binascii.Error, ValueError, UnicodeDecodeError) as exc:
        raise PayloadDecodeError(f"AES-CBC decryption failed: {exc}") from exc
