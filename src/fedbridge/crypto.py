"""Reversible payload protection and one-way identifier hashing."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from typing import Any

import msgspec
from cryptography.fernet import Fernet, InvalidToken
from msgspec import Struct

from .config import CryptoConfig
from .exceptions import DecryptionError
from .serialization import json_decode, json_encode


class Cryptor:
    """Tamper-evident encryption plus keyed hashing over separate key material.

    ``encrypt`` and ``decrypt`` use Fernet (AES-128-CBC with an HMAC-SHA256
    tag) keyed from ``encryption_key``. ``hash_string`` is an HMAC-SHA256 keyed
    with ``hash_key``. The two keys must differ so that a leaked lookup key
    never opens protected payloads and vice versa.

    Ciphertexts are the raw Fernet token bytes, so any modified bit fails
    authentication. Rotating either key invalidates everything issued under
    the old one.
    """

    def __init__(self, *, encryption_key: str | bytes, hash_key: str | bytes) -> None:
        encryption_material = _as_bytes(encryption_key)
        hash_material = _as_bytes(hash_key)
        if not encryption_material or not hash_material:
            raise ValueError("Cryptor requires non-empty key material")
        if hmac.compare_digest(encryption_material, hash_material):
            raise ValueError("Encryption and hash key material must differ")
        digest = hashlib.sha256(encryption_material).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))
        self._hash_key = hash_material

    @classmethod
    def from_config(cls, config: CryptoConfig) -> "Cryptor":
        return cls(encryption_key=config.encryption_key, hash_key=config.hash_key)

    def encrypt(self, plaintext: bytes) -> bytes:
        token = self._fernet.encrypt(bytes(plaintext))
        return base64.urlsafe_b64decode(token)

    def decrypt(self, ciphertext: bytes, *, ttl: int | None = None) -> bytes:
        """Return the plaintext for ``ciphertext``.

        Raises :class:`DecryptionError` for malformed, foreign, tampered, or
        (when ``ttl`` is given) expired ciphertexts.
        """

        token = base64.urlsafe_b64encode(bytes(ciphertext))
        try:
            return self._fernet.decrypt(token, ttl=ttl)
        except InvalidToken as exc:
            raise DecryptionError("Invalid or tampered ciphertext") from exc

    def hash_string(self, value: str) -> str:
        return hmac.new(self._hash_key, value.encode("utf-8"), hashlib.sha256).hexdigest()


class _Envelope(Struct, frozen=True):
    purpose: str
    data: Any = None


class PayloadCodec:
    """Serialize, encrypt, and purpose-tag structures for opaque transport."""

    def __init__(self, cryptor: Cryptor, *, ttl: int | None = None) -> None:
        self.cryptor = cryptor
        self.ttl = ttl

    def encode(self, purpose: str, value: Any) -> str:
        envelope = json_encode(_Envelope(purpose=purpose, data=value))
        return _b64url_encode(self.cryptor.encrypt(envelope))

    def decode(self, purpose: str, token: str, *, target: Any = Any) -> Any:
        try:
            ciphertext = _b64url_decode(token)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionError("Malformed payload") from exc
        plaintext = self.cryptor.decrypt(ciphertext, ttl=self.ttl)
        try:
            envelope = json_decode(plaintext, _Envelope)
        except msgspec.DecodeError as exc:
            raise DecryptionError("Malformed payload envelope") from exc
        if envelope.purpose != purpose:
            raise DecryptionError(f"Payload issued for {envelope.purpose!r}, expected {purpose!r}")
        try:
            return msgspec.convert(envelope.data, target)
        except msgspec.ValidationError as exc:
            raise DecryptionError("Payload does not match the expected shape") from exc


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * ((4 - len(data) % 4) % 4)
    return base64.urlsafe_b64decode(data + padding)


__all__ = ["Cryptor", "PayloadCodec"]
