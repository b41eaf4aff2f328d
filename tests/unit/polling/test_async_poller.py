# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from conftest import AsyncFakeTransport, json_response
from fixtures.test_data import SAMPLE_GATEWAY, SAMPLE_STATUS_FAILED, SAMPLE_STATUS_RUNNING, SAMPLE_STATUS_SUCCEEDED

from CloudServices.Management.core.errors import HttpError, OperationCancelledError, OperationFailedError
from CloudServices.Management.models.operation import OperationStatus
from CloudServices.Management.models.request import HttpRequest
from CloudServices.Management.polling.async_poller import AsyncOperationPoller

GW = "https://svc/gw/1"
OPS = "https://svc/ops/123"


def _start(poller, method="POST", url="https://svc/gw/1/reset", headers=None):
    if headers is None:
        headers = {"Operation-Location": OPS}
    return poller.start(json_response(202, None, headers), HttpRequest(method, url))


class TestAsyncOperationPoller:
    @pytest.mark.asyncio
    async def test_operation_location_example(self):
        transport = AsyncFakeTransport(
            json_response(200, SAMPLE_STATUS_RUNNING),
            json_response(200, SAMPLE_STATUS_SUCCEEDED),
        )
        poller = AsyncOperationPoller(transport, polling_interval=0, deserializer=lambda d: d["resourceId"])

        assert await poller.wait(_start(poller)) == "r1"
        assert transport.urls() == [OPS, OPS]

    @pytest.mark.asyncio
    async def test_put_fetches_final_resource(self):
        transport = AsyncFakeTransport(
            json_response(200, {"status": "Succeeded"}),
            json_response(200, SAMPLE_GATEWAY),
        )
        poller = AsyncOperationPoller(transport, polling_interval=0)
        handle = _start(poller, "PUT", GW, {"Azure-AsyncOperation": OPS})

        assert await poller.wait(handle) == SAMPLE_GATEWAY
        assert transport.urls() == [OPS, GW]

    @pytest.mark.asyncio
    async def test_failure_cached(self):
        transport = AsyncFakeTransport(json_response(200, SAMPLE_STATUS_FAILED))
        poller = AsyncOperationPoller(transport, polling_interval=0)
        handle = _start(poller)

        with pytest.raises(OperationFailedError) as first:
            await poller.wait(handle)
        with pytest.raises(OperationFailedError) as second:
            await poller.wait(handle)

        assert first.value is second.value
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_terminal_poll_makes_no_request(self):
        transport = AsyncFakeTransport(json_response(200, SAMPLE_STATUS_SUCCEEDED))
        poller = AsyncOperationPoller(transport)
        handle = _start(poller)
        await poller.poll(handle)

        assert (await poller.poll(handle)).status is OperationStatus.SUCCEEDED
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_http_error_leaves_handle_unchanged(self):
        transport = AsyncFakeTransport(json_response(502, {}))
        poller = AsyncOperationPoller(transport)
        handle = _start(poller)

        with pytest.raises(HttpError):
            await poller.poll(handle)
        assert handle.status is OperationStatus.RUNNING
        assert not handle._poll_lock.locked()

    @pytest.mark.asyncio
    async def test_server_retry_after_beats_smaller_override(self):
        transport = AsyncFakeTransport(json_response(200, SAMPLE_STATUS_SUCCEEDED))
        poller = AsyncOperationPoller(transport)
        handle = _start(poller, headers={"Operation-Location": OPS, "Retry-After": "30"})

        with patch("CloudServices.Management.polling.async_poller.sleep_or_cancel", new=AsyncMock(return_value=False)) as sleep:
            await poller.wait(handle, poll_interval=5)

        assert sleep.await_args.args[0] == 30.0

    @pytest.mark.asyncio
    async def test_cancellation_interrupts_long_retry_after(self):
        transport = AsyncFakeTransport()
        poller = AsyncOperationPoller(transport)
        handle = _start(poller, headers={"Operation-Location": OPS, "Retry-After": "300"})
        cancel = asyncio.Event()
        loop = asyncio.get_running_loop()
        loop.call_later(0.1, cancel.set)
        started = loop.time()

        with pytest.raises(OperationCancelledError):
            await poller.wait(handle, cancellation=cancel)

        assert loop.time() - started < 5
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_cancellation_aborts_in_flight_status_check(self):
        aborted = asyncio.Event()

        class HangingTransport:
            async def send(self, request, **kwargs):
                try:
                    await asyncio.sleep(300)
                except asyncio.CancelledError:
                    aborted.set()
                    raise

        poller = AsyncOperationPoller(HangingTransport(), polling_interval=0)
        handle = poller.resume(_start(poller).descriptor)
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.1, cancel.set)

        with pytest.raises(OperationCancelledError):
            await poller.wait(handle, cancellation=cancel)

        assert aborted.is_set()
        assert handle.status is OperationStatus.NOT_STARTED
        assert not handle._poll_lock.locked()
