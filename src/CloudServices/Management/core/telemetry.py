# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Optional OpenTelemetry instrumentation of transport round trips.

Every round trip gets one CLIENT span named after its transport operation
(``lro.begin``, ``lro.poll``, ``lro.final``, ``list.first``, ``list.next``).
Metrics keep the two kinds of repeated traffic apart: status checks of
long-running operations are counted per polling mode, page fetches of
listings per operation, and server retry hints seen on status checks are
recorded as a histogram.

OpenTelemetry is an optional dependency (``pip install
cloudservices-management-core[telemetry]``); without it only hooks run.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping, Optional, Protocol, Tuple, runtime_checkable

from ..common.constants import (
    HEADER_CLIENT_REQUEST_ID,
    HEADER_CORRELATION_ID,
    HEADER_SERVICE_REQUEST_ID,
    OP_LRO_POLL,
    OTEL_ATTR_HTTP_METHOD,
    OTEL_ATTR_HTTP_STATUS_CODE,
    OTEL_ATTR_HTTP_URL,
    OTEL_ATTR_LRO_MODE,
    OTEL_ATTR_MGMT_CORRELATION_ID,
    OTEL_ATTR_MGMT_OPERATION,
    OTEL_ATTR_MGMT_REQUEST_ID,
    OTEL_ATTR_MGMT_SERVICE_REQUEST_ID,
    OTEL_ATTR_RETRY_AFTER,
)
from .http import parse_retry_after

if TYPE_CHECKING:
    from ..models.request import HttpRequest, ResponseEnvelope

try:
    from opentelemetry import metrics, trace
    from opentelemetry.trace import Status, StatusCode

    _OTEL_AVAILABLE = True
except ImportError:
    trace = None  # type: ignore[assignment]
    metrics = None  # type: ignore[assignment]
    Status = None  # type: ignore[assignment,misc]
    StatusCode = None  # type: ignore[assignment,misc]
    _OTEL_AVAILABLE = False

logger = logging.getLogger(__name__)

_INSTRUMENTATION_NAME = "CloudServices.Management"


@dataclass(frozen=True)
class TelemetryConfig:
    """
    Telemetry switches for a client.

    :param enable_tracing: Emit one span per round trip.
    :type enable_tracing: bool
    :param enable_metrics: Record round-trip durations, status checks, page fetches and retry hints.
    :type enable_metrics: bool
    :param hooks: Callbacks notified of every round trip; see :class:`TelemetryHook`.
    :type hooks: tuple
    """

    enable_tracing: bool = False
    enable_metrics: bool = False
    hooks: Tuple[Any, ...] = ()

    @property
    def enabled(self) -> bool:
        return self.enable_tracing or self.enable_metrics or bool(self.hooks)


@dataclass
class RoundTrip:
    """One traced request/response exchange, filled in as it progresses."""

    operation: str
    method: str
    url: str
    client_request_id: Optional[str] = None
    correlation_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    status_code: Optional[int] = None
    service_request_id: Optional[str] = None
    retry_after: Optional[float] = None
    duration_ms: Optional[float] = None
    _span: Any = field(default=None, repr=False)

    @property
    def is_status_check(self) -> bool:
        return self.operation == OP_LRO_POLL

    @property
    def is_page_fetch(self) -> bool:
        return self.operation.startswith("list.")


@runtime_checkable
class TelemetryHook(Protocol):
    """
    Round-trip callbacks. Every method is optional; exceptions are logged and ignored.
    """

    def on_round_trip(self, trip: RoundTrip) -> None:
        ...

    def on_transport_error(self, trip: RoundTrip, error: BaseException) -> None:
        ...

    def get_additional_headers(self) -> Dict[str, str]:
        ...


class TelemetryManager:
    """
    Spans, metrics and hook dispatch around transport round trips. Internal.

    :param config: Telemetry switches and hooks.
    :type config: TelemetryConfig
    """

    def __init__(self, config: TelemetryConfig) -> None:
        self._hooks = list(config.hooks)
        self._tracer = None
        self._durations = None
        self._status_checks = None
        self._page_fetches = None
        self._retry_hints = None

        if not _OTEL_AVAILABLE:
            if config.enable_tracing or config.enable_metrics:
                logger.warning("opentelemetry-api is not installed; tracing and metrics are disabled.")
            return
        if config.enable_tracing:
            self._tracer = trace.get_tracer(_INSTRUMENTATION_NAME)
        if config.enable_metrics:
            meter = metrics.get_meter(_INSTRUMENTATION_NAME)
            self._durations = meter.create_histogram(
                "cloudservices.round_trip.duration", unit="ms", description="Duration of transport round trips"
            )
            self._status_checks = meter.create_counter(
                "cloudservices.lro.status_checks", unit="1", description="Status checks of long-running operations"
            )
            self._page_fetches = meter.create_counter(
                "cloudservices.paging.page_fetches", unit="1", description="Listing pages fetched"
            )
            self._retry_hints = meter.create_histogram(
                "cloudservices.lro.retry_after", unit="s", description="Server retry hints on status checks"
            )

    @property
    def is_tracing_enabled(self) -> bool:
        return self._tracer is not None

    @property
    def is_metrics_enabled(self) -> bool:
        return self._durations is not None

    @contextmanager
    def trace_request(
        self,
        operation: str,
        request: "HttpRequest",
        headers: Mapping[str, str],
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Iterator[RoundTrip]:
        """
        Wrap one round trip. Pass the yielded value to :meth:`record_response`.

        ``headers`` are the headers actually sent; ``attributes`` are extra span
        attributes such as the polling mode or the page index.
        """
        trip = RoundTrip(
            operation=operation,
            method=request.method,
            url=request.url,
            client_request_id=headers.get(HEADER_CLIENT_REQUEST_ID),
            correlation_id=headers.get(HEADER_CORRELATION_ID),
            attributes=dict(attributes or {}),
        )
        if self._tracer is not None:
            span_attributes: Dict[str, Any] = {
                OTEL_ATTR_MGMT_OPERATION: operation,
                OTEL_ATTR_HTTP_METHOD: trip.method,
                OTEL_ATTR_HTTP_URL: trip.url,
            }
            if trip.client_request_id:
                span_attributes[OTEL_ATTR_MGMT_REQUEST_ID] = trip.client_request_id
            if trip.correlation_id:
                span_attributes[OTEL_ATTR_MGMT_CORRELATION_ID] = trip.correlation_id
            span_attributes.update(trip.attributes)
            trip._span = self._tracer.start_span(
                f"CloudServices {operation}", kind=trace.SpanKind.CLIENT, attributes=span_attributes
            )
        try:
            yield trip
        except Exception as exc:
            if trip._span is not None:
                trip._span.set_status(Status(StatusCode.ERROR, str(exc)))
                trip._span.record_exception(exc)
            self._notify("on_transport_error", trip, exc)
            raise
        finally:
            if trip._span is not None:
                trip._span.end()

    def record_response(self, trip: RoundTrip, response: "ResponseEnvelope") -> None:
        """Complete ``trip`` from ``response``: span attributes, metrics, then hooks."""
        trip.status_code = response.status_code
        trip.duration_ms = (time.perf_counter() - trip.started) * 1000
        trip.service_request_id = response.headers.get(HEADER_SERVICE_REQUEST_ID)
        trip.retry_after = parse_retry_after(response.headers)

        span = trip._span
        if span is not None:
            span.set_attribute(OTEL_ATTR_HTTP_STATUS_CODE, trip.status_code)
            if trip.service_request_id:
                span.set_attribute(OTEL_ATTR_MGMT_SERVICE_REQUEST_ID, trip.service_request_id)
            if trip.retry_after is not None:
                span.set_attribute(OTEL_ATTR_RETRY_AFTER, trip.retry_after)
            if trip.status_code >= 400:
                span.set_status(Status(StatusCode.ERROR, f"HTTP {trip.status_code}"))

        if self._durations is not None:
            labels = {OTEL_ATTR_MGMT_OPERATION: trip.operation, OTEL_ATTR_HTTP_STATUS_CODE: trip.status_code}
            self._durations.record(trip.duration_ms, labels)
            if trip.is_status_check:
                check_labels = dict(labels)
                check_labels[OTEL_ATTR_LRO_MODE] = trip.attributes.get(OTEL_ATTR_LRO_MODE, "unknown")
                self._status_checks.add(1, check_labels)
                if trip.retry_after is not None:
                    self._retry_hints.record(trip.retry_after, check_labels)
            elif trip.is_page_fetch:
                self._page_fetches.add(1, labels)

        self._notify("on_round_trip", trip)

    def get_additional_headers(self) -> Dict[str, str]:
        """Headers contributed by hooks, later hooks winning."""
        headers: Dict[str, str] = {}
        for hook in self._hooks:
            getter = getattr(hook, "get_additional_headers", None)
            if getter is None:
                continue
            try:
                headers.update(getter() or {})
            except Exception:
                logger.warning("Telemetry hook %r failed in get_additional_headers", hook, exc_info=True)
        return headers

    def _notify(self, method: str, *args: Any) -> None:
        for hook in self._hooks:
            callback = getattr(hook, method, None)
            if callback is None:
                continue
            try:
                callback(*args)
            except Exception:
                logger.warning("Telemetry hook %r failed in %s", hook, method, exc_info=True)


class NoOpTelemetryManager:
    """Stand-in used when telemetry is off; same surface as :class:`TelemetryManager`."""

    is_tracing_enabled = False
    is_metrics_enabled = False

    @contextmanager
    def trace_request(
        self,
        operation: str,
        request: "HttpRequest",
        headers: Mapping[str, str],
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Iterator[RoundTrip]:
        yield RoundTrip(operation, request.method, request.url)

    def record_response(self, trip: RoundTrip, response: "ResponseEnvelope") -> None:
        pass

    def get_additional_headers(self) -> Dict[str, str]:
        return {}


def create_telemetry_manager(config: Optional[TelemetryConfig]):
    """Return a :class:`TelemetryManager` when ``config`` enables anything, else a no-op."""
    if config is None or not config.enabled:
        return NoOpTelemetryManager()
    return TelemetryManager(config)


__all__ = [
    "TelemetryConfig",
    "TelemetryHook",
    "RoundTrip",
    "TelemetryManager",
    "NoOpTelemetryManager",
    "create_telemetry_manager",
]
