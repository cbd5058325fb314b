import pytest

from keylic.common.crypto import CryptoUtils


def test_sign_known_vector():
    """HMAC-SHA256 matches the published test vector."""
    signature = CryptoUtils.sign("The quick brown fox jumps over the lazy dog", "key")
    assert signature == (
        "f7bc83f430538424b13298e6aa6fb143ef4d59a14946175997479dbc2d1a3cd8"
    )


def test_sign_accepts_bytes_and_str():
    assert CryptoUtils.sign(b"body", b"key") == CryptoUtils.sign("body", "key")


def test_verify_accepts_matching_signature():
    signature = CryptoUtils.sign(b"payload", "E-S")
    assert CryptoUtils.verify(b"payload", "E-S", signature)
    assert CryptoUtils.verify(b"payload", "E-S", signature.upper())


def test_verify_rejects_other_key_and_body():
    signature = CryptoUtils.sign(b"payload", "E-S")
    assert not CryptoUtils.verify(b"payload", "S", signature)
    assert not CryptoUtils.verify(b"payload!", "E-S", signature)


def test_verify_rejects_non_hex_signature():
    assert not CryptoUtils.verify(b"payload", "key", "not-hex")
    assert not CryptoUtils.verify(b"payload", "key", "")


def test_derive_session_key_order_and_separator():
    assert CryptoUtils.derive_session_key("E", "S") == "E-S"


def test_derive_session_key_requires_ephemeral_key():
    with pytest.raises(ValueError):
        CryptoUtils.derive_session_key("", "S")


def test_ephemeral_keys_are_fresh():
    first = CryptoUtils.generate_ephemeral_key()
    second = CryptoUtils.generate_ephemeral_key()
    assert first and second
    assert first != second


def test_file_contents_hex_round_trip():
    data = bytes(range(256))
    assert bytes.fromhex(data.hex()) == data
