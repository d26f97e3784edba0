"""AES-CBC encryption for secret preference values.

Ciphertexts are stored as uppercase hex of ``IV || ciphertext`` with a
fresh random 16-byte IV per write.
"""

from __future__ import annotations

import secrets

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from streamprefs.exceptions import PreferencesCryptoError

_IV_BYTES = 16


def parse_hex_bytes(
    value: str,
    *,
    name: str,
    allowed_nbytes: set[int] | None = None,
) -> bytes:
    text = value.strip()
    if text.startswith("0x") or text.startswith("0X"):
        text = text[2:]
    if not text:
        raise PreferencesCryptoError(f"{name} is empty")
    if len(text) % 2 != 0:
        raise PreferencesCryptoError(f"{name} hex length must be even (got {len(text)})")
    try:
        data = bytes.fromhex(text)
    except ValueError as exc:
        raise PreferencesCryptoError(f"{name} must be hex-encoded") from exc

    if allowed_nbytes is not None and len(data) not in allowed_nbytes:
        allowed = ", ".join(str(n) for n in sorted(allowed_nbytes))
        raise PreferencesCryptoError(f"{name} must be {allowed} bytes (got {len(data)})")
    return data


def parse_aes_key(key_hex: str) -> bytes:
    """Decode and length-check a hex AES key."""
    return parse_hex_bytes(key_hex, name="AES key", allowed_nbytes={16, 24, 32})


def aes_encrypt_hex(plaintext: str, key: bytes) -> str:
    """AES-CBC encrypt with a random IV, returning uppercase hex.

    Parameters
    ----------
    plaintext : str
        UTF-8 string to encrypt.
    key : bytes
        16, 24 or 32 byte AES key.

    Returns
    -------
    str
        Uppercase hex of the IV followed by the ciphertext.

    Raises
    ------
    PreferencesCryptoError
        If encryption fails.
    """
    try:
        iv = secrets.token_bytes(_IV_BYTES)
        padder = padding.PKCS7(128).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ct = encryptor.update(padded) + encryptor.finalize()
        return (iv + ct).hex().upper()
    except Exception as exc:
        raise PreferencesCryptoError(f"AES encryption failed: {exc}") from exc


def aes_decrypt_utf8(cipher_hex: str, key: bytes) -> str:
    """Reverse :func:`aes_encrypt_hex`.

    Raises
    ------
    PreferencesCryptoError
        If the payload is malformed, the key is wrong, or the plaintext is
        not valid UTF-8.
    """
    try:
        blob = parse_hex_bytes(cipher_hex, name="AES ciphertext")
        if len(blob) < 2 * _IV_BYTES:
            raise PreferencesCryptoError(f"AES ciphertext too short ({len(blob)} bytes)")
        iv, ct = blob[:_IV_BYTES], blob[_IV_BYTES:]
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ct) + decryptor.finalize()
        unpadder = padding.PKCS7(128).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except PreferencesCryptoError:
        raise
    except Exception as exc:
        raise PreferencesCryptoError(f"AES decryption failed: {exc}") from exc
