from __future__ import annotations

import base64
import time

import pytest

from fedbridge.attributes import AttributeSet
from fedbridge.config import CryptoConfig
from fedbridge.crypto import Cryptor, PayloadCodec
from fedbridge.exceptions import DecryptionError


def _cryptor(encryption_key: str = "encryption", hash_key: str = "hashing") -> Cryptor:
    return Cryptor(encryption_key=encryption_key, hash_key=hash_key)


@pytest.mark.parametrize("plaintext", [b"", b"a", b"\x00\xff" * 64, "Jānis Bērziņš".encode()])
def test_decrypt_inverts_encrypt(plaintext: bytes) -> None:
    cryptor = _cryptor()
    assert cryptor.decrypt(cryptor.encrypt(plaintext)) == plaintext


def test_encrypt_is_randomized() -> None:
    cryptor = _cryptor()
    assert cryptor.encrypt(b"payload") != cryptor.encrypt(b"payload")


def test_any_flipped_bit_is_rejected() -> None:
    cryptor = _cryptor()
    ciphertext = cryptor.encrypt(b'{"purpose":"user-data"}')
    for index in range(len(ciphertext)):
        for bit in (0, 3, 7):
            tampered = bytearray(ciphertext)
            tampered[index] ^= 1 << bit
            with pytest.raises(DecryptionError):
                cryptor.decrypt(bytes(tampered))


def test_decrypt_rejects_foreign_key_and_garbage() -> None:
    ciphertext = _cryptor().encrypt(b"secret")
    with pytest.raises(DecryptionError):
        _cryptor(encryption_key="other").decrypt(ciphertext)
    with pytest.raises(DecryptionError):
        _cryptor().decrypt(b"not a token")
    with pytest.raises(DecryptionError):
        _cryptor().decrypt(b"")


def test_decrypt_enforces_ttl() -> None:
    cryptor = _cryptor()
    ciphertext = cryptor.encrypt(b"secret")
    assert cryptor.decrypt(ciphertext, ttl=60) == b"secret"
    time.sleep(1.1)
    with pytest.raises(DecryptionError):
        cryptor.decrypt(ciphertext, ttl=0)


def test_hash_string_is_deterministic_and_keyed() -> None:
    cryptor = _cryptor()
    first = cryptor.hash_string("123456-78910")
    assert first == cryptor.hash_string("123456-78910")
    assert first != "123456-78910"
    assert len(first) == 64
    assert first != cryptor.hash_string("123456-78911")
    assert first != _cryptor(hash_key="other-hash").hash_string("123456-78910")


def test_hash_key_does_not_depend_on_encryption_key() -> None:
    assert _cryptor(encryption_key="a").hash_string("x") == _cryptor(encryption_key="b").hash_string("x")


def test_cryptor_rejects_shared_or_empty_key_material() -> None:
    with pytest.raises(ValueError):
        Cryptor(encryption_key="same", hash_key="same")
    with pytest.raises(ValueError):
        Cryptor(encryption_key="", hash_key="hash")


def test_cryptor_from_config() -> None:
    cryptor = Cryptor.from_config(CryptoConfig(encryption_key="enc", hash_key="hash"))
    assert cryptor.hash_string("x") == _cryptor(encryption_key="enc", hash_key="hash").hash_string("x")


def test_payload_codec_round_trips_structs() -> None:
    codec = PayloadCodec(_cryptor())
    attributes = AttributeSet(national_identifier="123456-78910", given_name="Anna")
    token = codec.encode("user-data", attributes)
    assert "123456-78910" not in token
    assert codec.decode("user-data", token, target=AttributeSet) == attributes


def test_payload_codec_rejects_other_purpose() -> None:
    codec = PayloadCodec(_cryptor())
    token = codec.encode("relay-state", {"next": "/dashboard"})
    with pytest.raises(DecryptionError, match="relay-state"):
        codec.decode("user-data", token, target=AttributeSet)
    assert codec.decode("relay-state", token) == {"next": "/dashboard"}


def test_payload_codec_rejects_wrong_shape_and_malformed_tokens() -> None:
    codec = PayloadCodec(_cryptor())
    token = codec.encode("user-data", ["not", "a", "record"])
    with pytest.raises(DecryptionError):
        codec.decode("user-data", token, target=AttributeSet)
    with pytest.raises(DecryptionError):
        codec.decode("user-data", "%%%")
    raw = _cryptor().encrypt(b"not json")
    with pytest.raises(DecryptionError):
        codec.decode("user-data", base64.urlsafe_b64encode(raw).decode())
