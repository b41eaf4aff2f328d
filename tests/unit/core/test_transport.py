# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import asyncio
from unittest.mock import AsyncMock, MagicMock, Mock, patch

import aiohttp
import pytest

from CloudServices.Management.core.results import RequestMetadata
from CloudServices.Management.core.telemetry import TelemetryConfig, TelemetryManager
from CloudServices.Management.core.transport import AioHttpTransport, AsyncTransport, RequestsTransport, Transport
from CloudServices.Management.models.request import HttpRequest, ResponseEnvelope


def _http_response(status=200, body=b'{"status": "Running"}', headers=None):
    return Mock(status_code=status, content=body, headers=headers or {"x-ms-request-id": "svc-1"})


class TestRequestsTransport:
    def test_satisfies_protocol(self):
        assert isinstance(RequestsTransport(Mock()), Transport)

    def test_send_wraps_response(self):
        http = Mock()
        http.request.return_value = _http_response(202, b"", {"Operation-Location": "https://svc/ops/1"})
        transport = RequestsTransport(http)

        request = HttpRequest("PUT", "https://svc/gw/1", body={"location": "westus"})
        response = transport.send(request, operation="lro.begin")

        assert isinstance(response, ResponseEnvelope)
        assert response.status_code == 202
        assert response.headers["operation-location"] == "https://svc/ops/1"
        assert response.body == b""
        assert response.request is request
        method, url = http.request.call_args.args
        kwargs = http.request.call_args.kwargs
        assert (method, url) == ("PUT", "https://svc/gw/1")
        assert kwargs["json"] == {"location": "westus"}
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_request_ids_generated_and_preserved(self):
        http = Mock()
        http.request.return_value = _http_response()
        transport = RequestsTransport(http)

        response = transport.send(HttpRequest("GET", "https://svc/ops/1"))
        sent = http.request.call_args.kwargs["headers"]
        assert sent["x-ms-client-request-id"]
        assert sent["x-ms-correlation-request-id"] == sent["x-ms-client-request-id"]
        assert response.metadata.client_request_id == sent["x-ms-client-request-id"]
        assert response.metadata.service_request_id == "svc-1"
        assert response.metadata.http_status_code == 200

        transport.send(HttpRequest("GET", "https://svc/ops/1", {"x-ms-correlation-request-id": "corr-9"}))
        assert http.request.call_args.kwargs["headers"]["x-ms-correlation-request-id"] == "corr-9"

    def test_auth_headers_applied(self):
        http = Mock()
        http.request.return_value = _http_response()
        transport = RequestsTransport(http, auth_headers=lambda: {"Authorization": "Bearer t0k"})

        transport.send(HttpRequest("GET", "https://svc/ops/1"))

        assert http.request.call_args.kwargs["headers"]["Authorization"] == "Bearer t0k"

    def test_telemetry_hooks_see_round_trip(self):
        hook = MagicMock()
        hook.get_additional_headers.return_value = {"x-trace": "1"}
        http = Mock()
        http.request.return_value = _http_response(200)
        transport = RequestsTransport(http, telemetry=TelemetryManager(TelemetryConfig(hooks=[hook])))

        transport.send(
            HttpRequest("GET", "https://svc/ops/1"),
            operation="lro.poll",
            attributes={"cloudservices.lro.mode": "StatusMonitor"},
        )

        kwargs = http.request.call_args.kwargs
        assert kwargs["headers"]["x-trace"] == "1"
        assert "attributes" not in kwargs
        trip = hook.on_round_trip.call_args.args[0]
        assert trip.operation == "lro.poll"
        assert trip.status_code == 200
        assert trip.service_request_id == "svc-1"
        assert trip.client_request_id == kwargs["headers"]["x-ms-client-request-id"]
        assert trip.attributes == {"cloudservices.lro.mode": "StatusMonitor"}
        hook.on_transport_error.assert_not_called()

    def test_network_errors_propagate_unchanged(self):
        import requests

        http = Mock()
        http.request.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(requests.exceptions.ConnectionError):
            RequestsTransport(http).send(HttpRequest("GET", "https://svc/ops/1"))

    def test_close_closes_http_client(self):
        http = Mock()
        RequestsTransport(http).close()
        http.close.assert_called_once()


def _envelope(status, headers=None):
    return ResponseEnvelope(
        status,
        headers or {},
        b"{}",
        None,
        RequestMetadata(http_status_code=status, service_request_id="svc-1"),
    )


class TestAioHttpTransport:
    def test_satisfies_protocol(self):
        assert isinstance(AioHttpTransport(), AsyncTransport)

    def test_defaults(self):
        transport = AioHttpTransport()
        assert transport.max_attempts == 5
        assert transport.base_delay == 0.5
        assert transport.timeout.total == 120

    @pytest.mark.asyncio
    async def test_send_returns_envelope(self):
        transport = AioHttpTransport()
        with patch.object(transport, "_send_once", AsyncMock(return_value=_envelope(200))) as send_once:
            response = await transport.send(HttpRequest("GET", "https://svc/ops/1"), operation="lro.poll")

        assert response.status_code == 200
        headers = send_once.call_args.args[1]
        assert headers["Accept"] == "application/json"
        assert "x-ms-client-request-id" in headers

    @pytest.mark.asyncio
    async def test_transient_status_retried(self):
        transport = AioHttpTransport(jitter=False)
        responses = [_envelope(503, {"Retry-After": "2"}), _envelope(200)]
        with patch.object(transport, "_send_once", AsyncMock(side_effect=responses)), patch(
            "asyncio.sleep", new=AsyncMock()
        ) as sleep:
            response = await transport.send(HttpRequest("GET", "https://svc/ops/1"))

        assert response.status_code == 200
        sleep.assert_awaited_once_with(2.0)

    @pytest.mark.asyncio
    async def test_connection_error_retried_then_raised(self):
        transport = AioHttpTransport(retries=2, jitter=False)
        failure = aiohttp.ClientConnectionError("reset")
        with patch.object(transport, "_send_once", AsyncMock(side_effect=[failure, failure])) as send_once, patch(
            "asyncio.sleep", new=AsyncMock()
        ) as sleep:
            with pytest.raises(aiohttp.ClientConnectionError):
                await transport.send(HttpRequest("GET", "https://svc/ops/1"))

        assert send_once.await_count == 2
        sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_async_auth_headers(self):
        async def auth():
            return {"Authorization": "Bearer async-t0k"}

        transport = AioHttpTransport(auth_headers=auth)
        with patch.object(transport, "_send_once", AsyncMock(return_value=_envelope(200))) as send_once:
            await transport.send(HttpRequest("GET", "https://svc/ops/1"))

        assert send_once.call_args.args[1]["Authorization"] == "Bearer async-t0k"

    @pytest.mark.asyncio
    async def test_close_only_closes_owned_session(self):
        shared = MagicMock()
        shared.closed = False
        shared.close = AsyncMock()
        transport = AioHttpTransport(session=shared)

        await transport.close()

        shared.close.assert_not_awaited()
