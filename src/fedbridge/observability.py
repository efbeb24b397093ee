"""Observability integration for federated login."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

import msgspec


class ObservabilityConfig(msgspec.Struct, frozen=True):
    """Tracing, error tracking, metrics, and event log configuration."""

    enabled: bool = True
    opentelemetry_enabled: bool = True
    opentelemetry_tracer: str = "fedbridge"
    sentry_enabled: bool = True
    sentry_record_breadcrumbs: bool = True
    sentry_breadcrumb_category: str = "fedbridge"
    datadog_enabled: bool = True
    datadog_metric_prefix: str = "fedbridge"
    datadog_tags: tuple[tuple[str, str], ...] = ()


class Observability:
    """Coordinate tracing, error tracking, metrics, and logging providers."""

    def __init__(self, config: ObservabilityConfig | None = None) -> None:
        self.config = config or ObservabilityConfig()
        self._tracer = None
        self._sentry = None
        self._statsd = None
        self._logger = logging.getLogger("fedbridge.observability")
        self._base_datadog_tags = tuple(f"{key}:{value}" for key, value in self.config.datadog_tags)
        if self.config.enabled:
            self._prepare_opentelemetry()
            self._prepare_sentry()
            self._prepare_datadog()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _prepare_opentelemetry(self) -> None:
        if not self.config.opentelemetry_enabled:
            return
        try:
            from opentelemetry import trace  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._tracer = trace.get_tracer(self.config.opentelemetry_tracer)

    def _prepare_sentry(self) -> None:
        if not self.config.sentry_enabled:
            return
        try:
            import sentry_sdk  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._sentry = sentry_sdk

    def _prepare_datadog(self) -> None:
        if not self.config.datadog_enabled:
            return
        try:
            from datadog import statsd  # type: ignore[import-not-found]
        except ImportError:  # pragma: no cover - optional dependency
            return
        self._statsd = statsd

    @contextmanager
    def span(self, name: str, **attributes: Any) -> Iterator[Any]:
        """Wrap a unit of work in a tracing span when a tracer is available."""

        if not self.config.enabled or self._tracer is None:
            yield None
            return
        clean = {key: value for key, value in attributes.items() if value is not None}
        with self._tracer.start_as_current_span(name, attributes=clean) as span:
            yield span

    def record(self, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
        """Emit ``event`` as a structured log line and forward it to the providers."""

        if not self.config.enabled:
            return
        payload: dict[str, Any] = {key: value for key, value in fields.items() if value is not None}
        payload["event"] = event
        self._logger.log(level, msgspec.json.encode(payload).decode())
        if self._sentry is not None and self.config.sentry_record_breadcrumbs:
            self._sentry.add_breadcrumb(
                category=self.config.sentry_breadcrumb_category,
                message=event,
                level=logging.getLevelName(level).lower(),
                data=payload,
            )
        if self._statsd is not None:
            tags = list(self._base_datadog_tags)
            tags.extend(f"{key}:{value}" for key, value in _metric_tags(payload).items())
            self._statsd.increment(f"{self.config.datadog_metric_prefix}.{event}", tags=tags)


def _metric_tags(payload: Mapping[str, Any]) -> dict[str, str]:
    return {key: str(value) for key, value in payload.items() if key in {"outcome", "stage", "mode"}}


__all__ = ["Observability", "ObservabilityConfig"]
