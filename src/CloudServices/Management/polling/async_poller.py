# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Asyncio long-running-operation poller.

Same contract as :class:`~CloudServices.Management.polling.poller.OperationPoller`
with ``poll`` and ``wait`` as coroutines. Cancellation is signalled with an
:class:`asyncio.Event`; it interrupts the sleep and also cancels the in-flight
status check, since ``aiohttp`` requests are cancellable. Cancelling the task
running ``wait`` works as usual and raises :class:`asyncio.CancelledError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ..common.constants import OP_LRO_FINAL, OP_LRO_POLL
from ..core._cancellation import run_cancellable, sleep_or_cancel
from ..core.errors import OperationCancelledError
from ..core.transport import AsyncTransport
from ..models.operation import HandleSnapshot, OperationHandle, OperationStatus
from ._base import _PollerBase
from ._detection import Deserializer, decode_final_response, decode_result, final_resource_request, read_status, status_check_request

logger = logging.getLogger(__name__)


class AsyncOperationPoller(_PollerBase):
    """
    Drives long-running operations to completion over an asyncio transport.

    :param transport: Asyncio transport used for status checks and final-resource fetches.
    :type transport: ~CloudServices.Management.core.transport.AsyncTransport
    :param polling_interval: Default delay in seconds between status checks (default 10).
    :type polling_interval: float or None
    :param deserializer: Converts the final resource JSON into the result value.
    :type deserializer: Callable[[Any], Any] or None
    """

    def __init__(
        self,
        transport: AsyncTransport,
        *,
        polling_interval: Optional[float] = None,
        deserializer: Optional[Deserializer] = None,
    ) -> None:
        super().__init__(polling_interval=polling_interval, deserializer=deserializer)
        self._transport = transport

    async def poll(self, handle: OperationHandle) -> HandleSnapshot:
        """
        Issue exactly one status check and update the handle.

        See :meth:`OperationPoller.poll <CloudServices.Management.polling.poller.OperationPoller.poll>`.
        If the coroutine is cancelled the handle is left unchanged.

        :raises aiohttp.ClientError: Transport failures, unchanged.
        """
        if handle.is_terminal:
            return handle.snapshot()
        self._enter_poll(handle)
        try:
            descriptor = handle.descriptor
            response = await self._transport.send(
                status_check_request(descriptor), operation=OP_LRO_POLL, attributes=self._trace_attributes(descriptor)
            )
            reading = read_status(descriptor, response)
            result: Any = None
            if reading.status is OperationStatus.SUCCEEDED:
                final_request = final_resource_request(descriptor, reading)
                if final_request is None:
                    result = decode_result(reading.body, self._deserializer_for(handle))
                else:
                    final_response = await self._transport.send(
                        final_request, operation=OP_LRO_FINAL, attributes=self._trace_attributes(descriptor)
                    )
                    result = decode_final_response(final_response, self._deserializer_for(handle))
            return self._commit(handle, response, reading, result)
        finally:
            self._leave_poll(handle)

    async def wait(
        self,
        handle: OperationHandle,
        poll_interval: Optional[float] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> Any:
        """
        Suspend until the operation is terminal and return its result.

        :param handle: Operation handle to drive.
        :param poll_interval: Caller override for the delay between checks. A larger
            server retry hint still wins.
        :type poll_interval: float or None
        :param cancellation: Event that aborts the wait (and any in-flight check) when set.
        :type cancellation: asyncio.Event or None
        :return: The decoded final resource.
        :raises ~CloudServices.Management.core.errors.OperationFailedError: If the operation failed.
        :raises ~CloudServices.Management.core.errors.OperationCancelledError: If cancelled.
        """
        while not handle.is_terminal:
            if cancellation is not None and cancellation.is_set():
                raise OperationCancelledError()
            delay = self._next_delay(handle, poll_interval)
            if delay > 0:
                logger.debug("Waiting %.2fs before next status check of %s", delay, handle.descriptor.status_url)
                if await sleep_or_cancel(delay, cancellation):
                    raise OperationCancelledError()
            await run_cancellable(self.poll(handle), cancellation)
        return self._outcome(handle)


__all__ = ["AsyncOperationPoller"]
