# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Transports: the ``send(request) -> response`` seam used by the poller and the enumerator.

:class:`RequestsTransport` is the blocking implementation built on
:class:`~CloudServices.Management.core.http.HttpClient`;
:class:`AioHttpTransport` is the asyncio implementation built on ``aiohttp``.
Both return :class:`~CloudServices.Management.models.request.ResponseEnvelope`
for every HTTP status and let network failures propagate unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

import aiohttp

from ..common.constants import HEADER_CLIENT_REQUEST_ID, HEADER_CORRELATION_ID, HEADER_SERVICE_REQUEST_ID
from ..models.request import HttpRequest, ResponseEnvelope
from ._error_codes import TRANSIENT_STATUS_CODES
from .http import HttpClient, compute_retry_delay
from .results import RequestMetadata
from .telemetry import NoOpTelemetryManager, TelemetryManager

logger = logging.getLogger(__name__)

TelemetryLike = Union[TelemetryManager, NoOpTelemetryManager]


@runtime_checkable
class Transport(Protocol):
    """Blocking transport protocol."""

    def send(self, request: HttpRequest, **kwargs: Any) -> ResponseEnvelope:
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Asyncio transport protocol."""

    async def send(self, request: HttpRequest, **kwargs: Any) -> ResponseEnvelope:
        ...


def _prepare_headers(request: HttpRequest, telemetry: TelemetryLike) -> Dict[str, str]:
    headers = dict(request.headers)
    headers.update(telemetry.get_additional_headers())
    headers.setdefault(HEADER_CLIENT_REQUEST_ID, str(uuid.uuid4()))
    headers.setdefault(HEADER_CORRELATION_ID, headers[HEADER_CLIENT_REQUEST_ID])
    headers.setdefault("Accept", "application/json")
    if request.body is not None:
        headers.setdefault("Content-Type", "application/json")
    return headers


def _metadata(headers: Dict[str, str], response_headers: Any, status: int, started: float) -> RequestMetadata:
    return RequestMetadata(
        client_request_id=headers.get(HEADER_CLIENT_REQUEST_ID),
        correlation_id=headers.get(HEADER_CORRELATION_ID),
        service_request_id=response_headers.get(HEADER_SERVICE_REQUEST_ID),
        http_status_code=status,
        timing_ms=(time.perf_counter() - started) * 1000,
    )


class RequestsTransport:
    """
    Blocking transport over ``requests`` with the SDK retry policy.

    :param http: HTTP client applying retries and timeouts. A default one is created when omitted.
    :type http: ~CloudServices.Management.core.http.HttpClient or None
    :param telemetry: Telemetry manager wrapping each round trip.
    :type telemetry: ~CloudServices.Management.core.telemetry.TelemetryManager or None
    :param auth_headers: Callable returning per-request auth headers (e.g. a bearer token).
    :type auth_headers: Callable[[], dict[str, str]] or None
    """

    def __init__(
        self,
        http: Optional[HttpClient] = None,
        *,
        telemetry: Optional[TelemetryLike] = None,
        auth_headers=None,
    ) -> None:
        self._http = http or HttpClient()
        self._telemetry: TelemetryLike = telemetry or NoOpTelemetryManager()
        self._auth_headers = auth_headers

    def send(
        self,
        request: HttpRequest,
        *,
        operation: str = "request",
        attributes: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> ResponseEnvelope:
        """
        Send ``request`` and wrap the response.

        ``attributes`` are added to the round-trip span when tracing is on.

        :raises requests.exceptions.RequestException: On network failure after retries.
        """
        headers = _prepare_headers(request, self._telemetry)
        if self._auth_headers is not None:
            headers.update(self._auth_headers())
        started = time.perf_counter()
        with self._telemetry.trace_request(operation, request, headers, attributes) as trip:
            r = self._http.request(
                request.method,
                request.url,
                headers=headers,
                json=request.body,
                **kwargs,
            )
            envelope = ResponseEnvelope(
                status_code=r.status_code,
                headers=dict(r.headers),
                body=r.content or b"",
                request=request,
                metadata=_metadata(headers, r.headers, r.status_code, started),
            )
            self._telemetry.record_response(trip, envelope)
        logger.debug("%s %s %s -> %s", operation, request.method, request.url, r.status_code)
        return envelope

    def close(self) -> None:
        self._http.close()


class AioHttpTransport:
    """
    Asyncio transport over ``aiohttp``.

    Retries connection errors and transient status codes with the same backoff
    rules as :class:`~CloudServices.Management.core.http.HttpClient`. Cancelling
    the awaiting task aborts the in-flight request.

    :param session: Optional shared session. When omitted the transport creates and owns one.
    :type session: aiohttp.ClientSession or None
    :param timeout: Total per-request timeout in seconds (default 120).
    :type timeout: float or None
    :param retries: Maximum number of attempts (default 5).
    :type retries: int or None
    :param backoff: Base retry delay in seconds (default 0.5).
    :type backoff: float or None
    :param max_backoff: Upper bound for a single retry delay (default 60.0).
    :type max_backoff: float or None
    :param jitter: Whether to add ±25% jitter to retry delays.
    :type jitter: bool
    :param retry_transient_errors: Whether to retry 429, 502, 503 and 504 responses.
    :type retry_transient_errors: bool
    :param telemetry: Telemetry manager wrapping each round trip.
    :param auth_headers: Coroutine function returning per-request auth headers.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        *,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        backoff: Optional[float] = None,
        max_backoff: Optional[float] = None,
        jitter: bool = True,
        retry_transient_errors: bool = True,
        telemetry: Optional[TelemetryLike] = None,
        auth_headers=None,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout if timeout is not None else 120)
        self.max_attempts = max(1, retries if retries is not None else 5)
        self.base_delay = backoff if backoff is not None else 0.5
        self.max_backoff = max_backoff if max_backoff is not None else 60.0
        self.jitter = jitter
        self.retry_transient_errors = retry_transient_errors
        self._telemetry: TelemetryLike = telemetry or NoOpTelemetryManager()
        self._auth_headers = auth_headers

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    def _delay(self, attempt: int, headers: Optional[Any] = None) -> float:
        return compute_retry_delay(
            attempt,
            base_delay=self.base_delay,
            max_backoff=self.max_backoff,
            jitter=self.jitter,
            headers=headers,
        )

    async def _send_once(self, request: HttpRequest, headers: Dict[str, str], **kwargs: Any) -> ResponseEnvelope:
        session = await self._get_session()
        started = time.perf_counter()
        async with session.request(
            request.method,
            request.url,
            headers=headers,
            json=request.body,
            **kwargs,
        ) as response:
            body = await response.read()
            return ResponseEnvelope(
                status_code=response.status,
                headers=dict(response.headers),
                body=body,
                request=request,
                metadata=_metadata(headers, response.headers, response.status, started),
            )

    async def send(
        self,
        request: HttpRequest,
        *,
        operation: str = "request",
        attributes: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> ResponseEnvelope:
        """
        Send ``request`` and wrap the response.

        ``attributes`` are added to the round-trip span when tracing is on.

        :raises aiohttp.ClientError: On network failure after retries.
        :raises asyncio.TimeoutError: When the last attempt exceeds the timeout.
        """
        headers = _prepare_headers(request, self._telemetry)
        if self._auth_headers is not None:
            headers.update(await self._auth_headers())
        with self._telemetry.trace_request(operation, request, headers, attributes) as trip:
            for attempt in range(self.max_attempts):
                try:
                    envelope = await self._send_once(request, headers, **kwargs)
                except aiohttp.ClientConnectionError as exc:
                    if attempt == self.max_attempts - 1:
                        raise
                    delay = self._delay(attempt)
                    logger.warning("%s %s failed (%s); retrying in %.2fs", request.method, request.url, exc, delay)
                    await asyncio.sleep(delay)
                    continue
                if (
                    self.retry_transient_errors
                    and envelope.status_code in TRANSIENT_STATUS_CODES
                    and attempt < self.max_attempts - 1
                ):
                    delay = self._delay(attempt, envelope.headers)
                    logger.warning(
                        "%s %s returned %s; retrying in %.2fs", request.method, request.url, envelope.status_code, delay
                    )
                    await asyncio.sleep(delay)
                    continue
                break
            self._telemetry.record_response(trip, envelope)
        logger.debug("%s %s %s -> %s", operation, request.method, request.url, envelope.status_code)
        return envelope

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None


__all__ = ["Transport", "AsyncTransport", "RequestsTransport", "AioHttpTransport"]
