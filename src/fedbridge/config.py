"""Configuration objects and the in-memory configuration store."""

from __future__ import annotations

import os
import threading
from enum import Enum
from typing import Any, Callable, Mapping

import msgspec
from msgspec import Struct

from .exceptions import ConfigurationError
from .observability import ObservabilityConfig

SETTINGS_NAME = "fedbridge.settings"
_ENV_PREFIX = "FEDBRIDGE_"


class OperatingMode(str, Enum):
    DEDICATED = "dedicated"
    SHARED = "shared"

    def __str__(self) -> str:
        return self.value


class CryptoConfig(Struct, frozen=True):
    """Key material for payload protection and identifier hashing."""

    encryption_key: str
    hash_key: str
    payload_ttl_seconds: int | None = 900


class FederationSettings(Struct, frozen=True):
    """Operator-editable federation switches."""

    activate: bool = False
    disable_default_login: bool = False


class AppConfig(Struct, frozen=True):
    """Typed configuration for a federation deployment."""

    crypto: CryptoConfig
    site_path: str = "sites/default"
    dedicated_site_path: str = "sites/federation"
    base_url: str = "http://localhost"
    settings: FederationSettings = FederationSettings()
    observability: ObservabilityConfig = ObservabilityConfig()

    @property
    def operating_mode(self) -> OperatingMode:
        """Dedicated deployments are identified by their site path."""

        if self.site_path == self.dedicated_site_path:
            return OperatingMode.DEDICATED
        return OperatingMode.SHARED

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        crypto: dict[str, Any] = {}
        for key, field in (
            ("ENCRYPTION_KEY", "encryption_key"),
            ("HASH_KEY", "hash_key"),
            ("PAYLOAD_TTL", "payload_ttl_seconds"),
        ):
            value = env.get(_ENV_PREFIX + key)
            if value:
                crypto[field] = value
        for required in ("encryption_key", "hash_key"):
            if required not in crypto:
                raise ConfigurationError(f"{_ENV_PREFIX}{required.upper()} must be set")
        settings = {
            field: env[_ENV_PREFIX + key]
            for key, field in (("ACTIVATE", "activate"), ("DISABLE_DEFAULT_LOGIN", "disable_default_login"))
            if env.get(_ENV_PREFIX + key)
        }
        payload: dict[str, Any] = {"crypto": crypto, "settings": settings}
        for key, field in (("SITE_PATH", "site_path"), ("BASE_URL", "base_url")):
            value = env.get(_ENV_PREFIX + key)
            if value:
                payload[field] = value
        try:
            return msgspec.convert(payload, cls, strict=False)
        except msgspec.ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc


class ConfigSaved(Struct, frozen=True):
    """Emitted after a named configuration object has been saved."""

    name: str
    value: Any


ConfigSubscriber = Callable[[ConfigSaved], None]


class ConfigStore:
    """Named configuration objects with save notifications."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})
        self._subscribers: list[ConfigSubscriber] = []
        self._lock = threading.Lock()

    def get(self, name: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(name, default)

    def settings(self) -> FederationSettings:
        value = self.get(SETTINGS_NAME)
        return value if isinstance(value, FederationSettings) else FederationSettings()

    def subscribe(self, subscriber: ConfigSubscriber) -> None:
        self._subscribers.append(subscriber)

    def save(self, name: str, value: Any) -> None:
        with self._lock:
            self._values[name] = value
        event = ConfigSaved(name=name, value=value)
        for subscriber in list(self._subscribers):
            subscriber(event)


__all__ = [
    "SETTINGS_NAME",
    "AppConfig",
    "ConfigSaved",
    "ConfigStore",
    "ConfigSubscriber",
    "CryptoConfig",
    "FederationSettings",
    "OperatingMode",
]
