# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Transport-facing request and response values.

These are the only shapes the poller and the enumerator exchange with a
transport: an :class:`HttpRequest` goes in, a :class:`ResponseEnvelope` comes out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from ..core.results import RequestMetadata


@dataclass(frozen=True)
class HttpRequest:
    """
    Descriptor of a single HTTP request.

    :param method: HTTP method, upper-cased on construction.
    :type method: str
    :param url: Absolute request URL.
    :type url: str
    :param headers: Request headers.
    :type headers: dict[str, str]
    :param body: JSON-serializable request body, or None.
    :type body: Any
    """

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("url is required.")
        object.__setattr__(self, "method", (self.method or "GET").upper())
        object.__setattr__(self, "headers", dict(self.headers or {}))


@dataclass(frozen=True)
class ResponseEnvelope:
    """
    Status code, headers and raw body of one HTTP response.

    Header lookups are case-insensitive.

    :param status_code: HTTP status code.
    :type status_code: int
    :param headers: Response headers.
    :type headers: Mapping[str, str]
    :param body: Raw response body.
    :type body: bytes
    :param request: The request that produced this response, when known.
    :type request: ~CloudServices.Management.models.request.HttpRequest or None
    :param metadata: Request tracing metadata, when the transport recorded it.
    :type metadata: ~CloudServices.Management.core.results.RequestMetadata or None
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""
    request: Optional[HttpRequest] = None
    metadata: Optional[RequestMetadata] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", CaseInsensitiveDict(self.headers or {}))
        if isinstance(self.body, str):
            object.__setattr__(self, "body", self.body.encode("utf-8"))
        elif self.body is None:
            object.__setattr__(self, "body", b"")

    @classmethod
    def from_json(
        cls,
        status_code: int,
        body: Any,
        headers: Optional[Mapping[str, str]] = None,
        request: Optional[HttpRequest] = None,
    ) -> "ResponseEnvelope":
        """Build an envelope whose body is ``body`` encoded as JSON."""
        raw = b"" if body is None else json.dumps(body).encode("utf-8")
        return cls(status_code=status_code, headers=headers or {}, body=raw, request=request)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        """
        Decode the body as JSON.

        :raises ValueError: If the body is empty or not valid JSON.
        """
        if not self.body:
            raise ValueError("Response body is empty.")
        return json.loads(self.body)


__all__ = ["HttpRequest", "ResponseEnvelope"]
