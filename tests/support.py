"""Test support utilities for fedbridge tests."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from fedbridge.accounts import Account
from fedbridge.config import AppConfig, CryptoConfig
from fedbridge.observability import ObservabilityConfig

KEYS = CryptoConfig(encryption_key="test-encryption-key", hash_key="test-hash-key", payload_ttl_seconds=None)
QUIET = ObservabilityConfig(opentelemetry_enabled=False, sentry_enabled=False, datadog_enabled=False)


def make_config(**overrides: Any) -> AppConfig:
    values: dict[str, Any] = {"crypto": KEYS, "observability": QUIET, "base_url": "https://example.test"}
    values.update(overrides)
    return AppConfig(**values)


class RecordingAccountStore:
    def __init__(self, accounts: Iterable[Account] = ()) -> None:
        self.accounts = list(accounts)
        self.calls: list[tuple[str, str]] = []

    def load_by_property(self, field_name: str, value: str) -> list[Account]:
        self.calls.append((field_name, value))
        return [account for account in self.accounts if getattr(account, field_name, None) == value]


class FailingUserData:
    def set_flag(self, namespace: str, account_id: str, key: str, value: Any) -> None:
        raise RuntimeError("user data store offline")

    def get_flag(self, namespace: str, account_id: str, key: str, default: Any = None) -> Any:
        return default


class RecordingSessionManager:
    def __init__(self) -> None:
        self.established: list[str] = []

    def establish_session(self, account: Any) -> str:
        self.established.append(account.id)
        return f"session-{len(self.established)}"


class RecordingStatsd:
    def __init__(self) -> None:
        self.increments: list[tuple[str, list[str]]] = []

    def increment(self, metric: str, tags: list[str] | None = None) -> None:
        self.increments.append((metric, list(tags or [])))


class RecordingSentry:
    def __init__(self) -> None:
        self.breadcrumbs: list[dict[str, Any]] = []

    def add_breadcrumb(self, **kwargs: Any) -> None:
        self.breadcrumbs.append(kwargs)


class RecordingTracer:
    def __init__(self) -> None:
        self.spans: list[tuple[str, dict[str, Any]]] = []

    @contextmanager
    def start_as_current_span(self, name: str, attributes: dict[str, Any] | None = None) -> Iterator[str]:
        self.spans.append((name, dict(attributes or {})))
        yield name


__all__ = [
    "KEYS",
    "QUIET",
    "FailingUserData",
    "RecordingAccountStore",
    "RecordingSentry",
    "RecordingSessionManager",
    "RecordingStatsd",
    "RecordingTracer",
    "make_config",
]
