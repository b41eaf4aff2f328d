# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Request metadata captured for every transport round trip.

:class:`RequestMetadata` travels on each
:class:`~CloudServices.Management.models.request.ResponseEnvelope` so that pages
and operation snapshots can be traced back to the HTTP request that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RequestMetadata:
    """
    HTTP request/response metadata for diagnostics and tracing.

    :param client_request_id: Client-generated request ID sent in the
        ``x-ms-client-request-id`` header.
    :type client_request_id: :class:`str` | None
    :param correlation_id: Client-generated correlation ID shared across every
        request issued for one operation or one listing.
    :type correlation_id: :class:`str` | None
    :param service_request_id: Server-returned ``x-ms-request-id`` header value (if available).
    :type service_request_id: :class:`str` | None
    :param http_status_code: HTTP response status code.
    :type http_status_code: :class:`int` | None
    :param timing_ms: Round-trip duration in milliseconds.
    :type timing_ms: :class:`float` | None

    Example::

        metadata = RequestMetadata(
            client_request_id="abc-123",
            correlation_id="corr-456",
            http_status_code=202,
            timing_ms=150.5
        )
    """

    client_request_id: Optional[str] = None
    correlation_id: Optional[str] = None
    service_request_id: Optional[str] = None
    http_status_code: Optional[int] = None
    timing_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "client_request_id": self.client_request_id,
            "correlation_id": self.correlation_id,
            "service_request_id": self.service_request_id,
            "http_status_code": self.http_status_code,
            "timing_ms": self.timing_ms,
        }


__all__ = ["RequestMetadata"]
