# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Structured error hierarchy for the management SDK core.

Every error raised by the poller and the paged enumerator derives from
:class:`ManagementError`. Transport failures (``requests`` / ``aiohttp``
exceptions) are never wrapped and pass through unchanged.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, Optional

from . import _error_codes as ec
from .http import parse_retry_after


class ManagementError(Exception):
    """Base structured error for the management SDK core."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
        is_transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.subcode = subcode
        self.status_code = status_code
        self.details = details or {}
        self.source = source or "client"
        self.is_transient = is_transient
        self.timestamp = _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "subcode": self.subcode,
            "status_code": self.status_code,
            "details": self.details,
            "source": self.source,
            "is_transient": self.is_transient,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(code={self.code!r}, subcode={self.subcode!r}, message={self.message!r})"


class HttpError(ManagementError):
    """A non-2xx response on a request whose status code the core does not interpret itself."""

    def __init__(
        self,
        message: str,
        status_code: int,
        is_transient: bool = False,
        subcode: Optional[str] = None,
        service_error_code: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        body_excerpt: Optional[str] = None,
        retry_after: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        d = details or {}
        if service_error_code is not None:
            d["service_error_code"] = service_error_code
        if correlation_id is not None:
            d["correlation_id"] = correlation_id
        if request_id is not None:
            d["request_id"] = request_id
        if body_excerpt is not None:
            d["body_excerpt"] = body_excerpt
        if retry_after is not None:
            d["retry_after"] = retry_after
        super().__init__(
            message,
            code="http_error",
            subcode=subcode,
            status_code=status_code,
            details=d,
            source="server",
            is_transient=is_transient,
        )


class UnsupportedOperationShapeError(ManagementError):
    """The initiating response carries no recognizable long-running-operation indicator."""

    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="response_error", subcode=subcode or ec.OPERATION_SHAPE_UNRECOGNIZED, details=details, source="server")


class MalformedOperationResponseError(ManagementError):
    """A status-check or final-resource body matches no recognized schema."""

    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="response_error", subcode=subcode, details=details, source="server")


class MalformedPageResponseError(ManagementError):
    """A listing response body matches no recognized page schema."""

    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="response_error", subcode=subcode, details=details, source="server")


class OperationFailedError(ManagementError):
    """The service reported a terminal failure for a long-running operation.

    :param detail: The service supplied ``error`` object, if any.
    :type detail: :class:`dict` | None
    """

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None, subcode: Optional[str] = None):
        self.detail = dict(detail or {})
        details: Dict[str, Any] = {"error": self.detail} if self.detail else {}
        super().__init__(message, code="operation_failed", subcode=subcode or ec.OPERATION_FAILED, details=details, source="server")


class OperationCancelledError(ManagementError):
    """The caller cancelled a wait before the operation reached a terminal state."""

    def __init__(self, message: str = "Wait for operation was cancelled.", *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="operation_cancelled", details=details, source="client")


class ConcurrentPollError(ManagementError):
    def __init__(self, message: str = "Another poll is already in flight for this operation handle."):
        super().__init__(message, code="state_error", subcode=ec.STATE_CONCURRENT_POLL, source="client")


class ConcurrentPageFetchError(ManagementError):
    def __init__(self, message: str = "Another caller is already advancing this enumerator."):
        super().__init__(message, code="state_error", subcode=ec.STATE_CONCURRENT_PAGE_FETCH, source="client")


def http_error_from_response(response: Any) -> HttpError:
    """
    Build an :class:`HttpError` from a non-2xx response envelope.

    The service ``error`` object (``{"error": {"code": ..., "message": ...}}``) is
    used for the message when present; otherwise a body excerpt is attached.
    """
    status = int(response.status_code)
    headers = response.headers or {}
    service_code: Optional[str] = None
    message: Optional[str] = None
    excerpt: Optional[str] = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        service_code = body["error"].get("code")
        message = body["error"].get("message")
    if not message:
        text = response.text() if callable(getattr(response, "text", None)) else ""
        excerpt = text[:200] if text else None
        message = f"HTTP {status}" + (f": {excerpt}" if excerpt else "")
    request = getattr(response, "request", None)
    if request is not None:
        message = f"{request.method} {request.url} -> {message}"
    return HttpError(
        message,
        status_code=status,
        is_transient=ec._is_transient_status(status),
        subcode=ec._http_subcode(status),
        service_error_code=service_code,
        correlation_id=headers.get("x-ms-correlation-request-id"),
        request_id=headers.get("x-ms-request-id"),
        body_excerpt=excerpt,
        retry_after=parse_retry_after(headers),
    )


__all__ = [
    "ManagementError",
    "HttpError",
    "UnsupportedOperationShapeError",
    "MalformedOperationResponseError",
    "MalformedPageResponseError",
    "OperationFailedError",
    "OperationCancelledError",
    "ConcurrentPollError",
    "ConcurrentPageFetchError",
    "http_error_from_response",
]
