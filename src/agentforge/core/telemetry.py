"""
Telemetry sinks for run observability.

The default sinks are no-op/in-memory. `OpenTelemetrySink` can be used when
`opentelemetry-api` and `opentelemetry-sdk` are installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..agents.types import now_ms
from ..llms.types import JSONValue

logger = logging.getLogger(__name__)

RUN_SPAN = "agent.run"
RUNS_TOTAL = "agent.runs.total"
RUN_DURATION_MS = "agent.run.duration_ms"


@dataclass(frozen=True, slots=True)
class TelemetrySpan:
    """
    Started telemetry span.

    Attributes:
        name: Span name.
        started_at_ms: Span start timestamp.
        attributes: JSON-safe span attributes.
        native_span: Optional provider-native span object.
    """

    name: str
    started_at_ms: int
    attributes: dict[str, JSONValue] = field(default_factory=dict)
    native_span: Any = None


class TelemetrySink(Protocol):
    """Protocol implemented by telemetry backends."""

    def start_span(
        self, name: str, *, attributes: dict[str, JSONValue] | None = None
    ) -> TelemetrySpan | None:
        """Start a span, or return `None` when the backend has no spans."""
        ...

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        """End a span with a terminal status and optional error detail."""
        ...

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None: ...

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None: ...


@dataclass(slots=True)
class NullTelemetrySink:
    """No-op telemetry sink used as safe default."""

    def start_span(
        self, name: str, *, attributes: dict[str, JSONValue] | None = None
    ) -> TelemetrySpan | None:
        _ = name
        _ = attributes
        return None

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = (span, status, error, attributes)
        return None

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = (name, value, attributes)
        return None

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        _ = (name, value, attributes)
        return None


@dataclass(slots=True)
class InMemoryTelemetrySink:
    """Test/debug telemetry sink that stores emitted measurements."""

    _spans_closed: list[dict[str, Any]] = field(default_factory=list)
    _counters: list[dict[str, Any]] = field(default_factory=list)
    _histograms: list[dict[str, Any]] = field(default_factory=list)

    def start_span(
        self, name: str, *, attributes: dict[str, JSONValue] | None = None
    ) -> TelemetrySpan:
        return TelemetrySpan(name=name, started_at_ms=now_ms(), attributes=dict(attributes or {}))

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        if span is None:
            return None
        self._spans_closed.append(
            {
                "name": span.name,
                "started_at_ms": span.started_at_ms,
                "ended_at_ms": now_ms(),
                "status": status,
                "error": error,
                "attributes": {**span.attributes, **dict(attributes or {})},
            }
        )
        return None

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        self._counters.append(
            {"name": name, "value": int(value), "attributes": dict(attributes or {})}
        )

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        self._histograms.append(
            {"name": name, "value": float(value), "attributes": dict(attributes or {})}
        )

    def spans(self) -> list[dict[str, Any]]:
        return list(self._spans_closed)

    def counters(self) -> list[dict[str, Any]]:
        return list(self._counters)

    def histograms(self) -> list[dict[str, Any]]:
        return list(self._histograms)


@dataclass(slots=True)
class OpenTelemetrySink:
    """
    OpenTelemetry sink using the global tracer/meter providers.

    This class performs lazy imports so agentforge can run without OTel
    installed. Export failures are logged and never fail a run.
    """

    tracer_name: str = "agentforge.executors"
    meter_name: str = "agentforge.executors"

    _tracer: Any = field(default=None, init=False, repr=False)
    _meter: Any = field(default=None, init=False, repr=False)
    _counters: dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _histograms: dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def _ensure_clients(self) -> None:
        if self._tracer is not None and self._meter is not None:
            return
        try:
            from opentelemetry import metrics, trace
        except ImportError as e:
            raise RuntimeError(
                "OpenTelemetrySink requires 'opentelemetry-api'/'opentelemetry-sdk'"
            ) from e

        self._tracer = trace.get_tracer(self.tracer_name)
        self._meter = metrics.get_meter(self.meter_name)

    def start_span(
        self, name: str, *, attributes: dict[str, JSONValue] | None = None
    ) -> TelemetrySpan | None:
        try:
            self._ensure_clients()
            span = self._tracer.start_span(name=name)
            attr = _attrs(attributes)
            if attr:
                span.set_attributes(attr)
        except Exception:
            logger.warning("Failed to start span %s", name, exc_info=True)
            return None
        return TelemetrySpan(
            name=name,
            started_at_ms=now_ms(),
            attributes=dict(attributes or {}),
            native_span=span,
        )

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        if span is None or span.native_span is None:
            return None
        try:
            from opentelemetry.trace import Status, StatusCode

            native = span.native_span
            attr = _attrs({**span.attributes, **dict(attributes or {})})
            if attr:
                native.set_attributes(attr)
            if error:
                native.record_exception(Exception(error))
            if status in ("ok", "success"):
                native.set_status(Status(StatusCode.OK))
            else:
                native.set_status(Status(StatusCode.ERROR, error or status))
            native.end()
        except Exception:
            logger.warning("Failed to end span %s", span.name, exc_info=True)
        return None

    def increment_counter(
        self,
        name: str,
        value: int = 1,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self._ensure_clients()
            counter = self._counters.get(name)
            if counter is None:
                counter = self._meter.create_counter(name)
                self._counters[name] = counter
            counter.add(int(value), attributes=_attrs(attributes))
        except Exception:
            logger.warning("Failed to record counter %s", name, exc_info=True)

    def record_histogram(
        self,
        name: str,
        value: float,
        *,
        attributes: dict[str, JSONValue] | None = None,
    ) -> None:
        try:
            self._ensure_clients()
            histogram = self._histograms.get(name)
            if histogram is None:
                histogram = self._meter.create_histogram(name)
                self._histograms[name] = histogram
            histogram.record(float(value), attributes=_attrs(attributes))
        except Exception:
            logger.warning("Failed to record histogram %s", name, exc_info=True)


def _attrs(value: dict[str, JSONValue] | None) -> dict[str, Any]:
    return {str(key): _to_attr(item) for key, item in (value or {}).items()}


def _to_attr(value: JSONValue) -> Any:
    """Convert JSON-safe values into OpenTelemetry attribute-compatible values."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, list):
        return tuple(_to_attr(item) for item in value)
    return str(value)
