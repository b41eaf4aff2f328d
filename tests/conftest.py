# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Shared pytest fixtures and configuration for management SDK tests.

This module provides scripted fake transports, response builders and
configuration objects used across the unit tests.
"""

from typing import Any, Dict, List, Optional

import pytest

from CloudServices.Management.core.config import ManagementConfig
from CloudServices.Management.models.request import HttpRequest, ResponseEnvelope


def json_response(status_code: int, body: Any = None, headers: Optional[Dict[str, str]] = None) -> ResponseEnvelope:
    """Build a response envelope with a JSON body."""
    return ResponseEnvelope.from_json(status_code, body, headers=headers)


class FakeTransport:
    """Blocking transport replaying scripted responses in order.

    Each script entry is either a :class:`ResponseEnvelope` or an exception
    instance, which is raised instead of returning.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses: List[Any] = list(responses)
        self.requests: List[HttpRequest] = []
        self.operations: List[str] = []
        self.attributes: List[Any] = []

    def send(self, request: HttpRequest, *, operation: str = "request", **kwargs: Any) -> ResponseEnvelope:
        self.requests.append(request)
        self.operations.append(operation)
        self.attributes.append(kwargs.get("attributes"))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return ResponseEnvelope(item.status_code, item.headers, item.body, request, item.metadata)

    def urls(self) -> List[str]:
        return [r.url for r in self.requests]


class AsyncFakeTransport(FakeTransport):
    """Asyncio flavor of :class:`FakeTransport`."""

    async def send(self, request: HttpRequest, *, operation: str = "request", **kwargs: Any) -> ResponseEnvelope:
        return FakeTransport.send(self, request, operation=operation, **kwargs)


@pytest.fixture
def test_config():
    """Test configuration with safe defaults."""
    return ManagementConfig(
        api_version="2024-05-01",
        polling_interval=0.0,
        http_retries=1,
        http_backoff=0.1,
        http_timeout=5,
    )


@pytest.fixture
def sample_base_url():
    """Standard test base URL."""
    return "https://management.example.com"


@pytest.fixture
def gateway_url(sample_base_url):
    """Resource URL of a sample gateway."""
    return f"{sample_base_url}/subscriptions/sub1/resourceGroups/rg1/providers/Microsoft.Network/p2sVpnGateways/gw1"


@pytest.fixture
def status_url():
    """Status monitor URL returned by the service."""
    return "https://svc/ops/123"
