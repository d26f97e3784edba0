"""Cryptographic primitives for secret preferences."""

from __future__ import annotations

from streamprefs._crypto.aes import aes_decrypt_utf8, aes_encrypt_hex, parse_aes_key

__all__ = [
    "aes_decrypt_utf8",
    "aes_encrypt_hex",
    "parse_aes_key",
]
