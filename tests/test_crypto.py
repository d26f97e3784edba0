from __future__ import annotations

import pytest

from streamprefs._crypto.aes import aes_decrypt_utf8, aes_encrypt_hex, parse_aes_key
from streamprefs.exceptions import PreferencesCryptoError

_KEY_HEX = "00112233445566778899AABBCCDDEEFF"
_OTHER_KEY_HEX = "FFEEDDCCBBAA99887766554433221100"


def test_encrypt_uses_fresh_iv_per_call() -> None:
    key = parse_aes_key(_KEY_HEX)

    first = aes_encrypt_hex("hunter2", key)
    second = aes_encrypt_hex("hunter2", key)

    assert first != second
    assert first == first.upper()
    assert aes_decrypt_utf8(first, key) == aes_decrypt_utf8(second, key) == "hunter2"


def test_decrypt_with_wrong_key_raises_crypto_error() -> None:
    cipher_hex = aes_encrypt_hex("a reasonably long secret value", parse_aes_key(_KEY_HEX))

    with pytest.raises(PreferencesCryptoError, match="AES decryption failed"):
        aes_decrypt_utf8(cipher_hex, parse_aes_key(_OTHER_KEY_HEX))


def test_decrypt_rejects_truncated_payload() -> None:
    with pytest.raises(PreferencesCryptoError, match="too short"):
        aes_decrypt_utf8("00" * 16, parse_aes_key(_KEY_HEX))


@pytest.mark.parametrize(
    ("key_hex", "message"),
    [
        ("", "is empty"),
        ("abc", "length must be even"),
        ("zz" * 16, "must be hex-encoded"),
        ("00" * 10, "must be 16, 24, 32 bytes"),
    ],
)
def test_parse_aes_key_validation(key_hex: str, message: str) -> None:
    with pytest.raises(PreferencesCryptoError, match=message):
        parse_aes_key(key_hex)


def test_parse_aes_key_accepts_prefix_and_whitespace() -> None:
    assert parse_aes_key(f"  0x{_KEY_HEX}  ") == bytes.fromhex(_KEY_HEX)
