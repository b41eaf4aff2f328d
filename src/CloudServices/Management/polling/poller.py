# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Blocking long-running-operation poller.

Example::

    poller = OperationPoller(transport, deserializer=Gateway.from_dict)
    handle = poller.start(transport.send(HttpRequest("PUT", url, body=payload)))
    gateway = poller.wait(handle)

Resuming in another process::

    saved = handle.descriptor.to_json()
    ...
    handle = poller.resume(saved)
    gateway = poller.wait(handle)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Optional

from ..common.constants import OP_LRO_FINAL, OP_LRO_POLL
from ..core.errors import OperationCancelledError
from ..core.transport import Transport
from ..models.operation import HandleSnapshot, OperationHandle, OperationStatus
from ._base import _PollerBase
from ._detection import Deserializer, decode_final_response, decode_result, final_resource_request, read_status, status_check_request

logger = logging.getLogger(__name__)


class OperationPoller(_PollerBase):
    """
    Drives long-running operations to completion over a blocking transport.

    The poller keeps no per-operation state; everything lives on the
    :class:`~CloudServices.Management.models.operation.OperationHandle`. One poller
    can serve any number of handles, but ``poll`` must not be called concurrently
    on the same handle.

    :param transport: Blocking transport used for status checks and final-resource fetches.
    :type transport: ~CloudServices.Management.core.transport.Transport
    :param polling_interval: Default delay in seconds between status checks (default 10).
    :type polling_interval: float or None
    :param deserializer: Converts the final resource JSON into the result value.
    :type deserializer: Callable[[Any], Any] or None
    """

    def __init__(
        self,
        transport: Transport,
        *,
        polling_interval: Optional[float] = None,
        deserializer: Optional[Deserializer] = None,
    ) -> None:
        super().__init__(polling_interval=polling_interval, deserializer=deserializer)
        self._transport = transport

    def poll(self, handle: OperationHandle) -> HandleSnapshot:
        """
        Issue exactly one status check and update the handle.

        Terminal handles are returned as-is without any network call. Errors
        leave the handle in its previous state so the caller may poll again.

        :param handle: Operation handle to advance.
        :type handle: ~CloudServices.Management.models.operation.OperationHandle
        :return: Snapshot after the status check.
        :rtype: ~CloudServices.Management.models.operation.HandleSnapshot
        :raises ~CloudServices.Management.core.errors.HttpError: On a non-2xx status check
            or final-resource fetch.
        :raises ~CloudServices.Management.core.errors.MalformedOperationResponseError:
            If the status body is not recognized.
        :raises ~CloudServices.Management.core.errors.ConcurrentPollError:
            If another poll is in flight on the same handle.
        :raises requests.exceptions.RequestException: Transport failures, unchanged.
        """
        if handle.is_terminal:
            return handle.snapshot()
        self._enter_poll(handle)
        try:
            descriptor = handle.descriptor
            response = self._transport.send(
                status_check_request(descriptor), operation=OP_LRO_POLL, attributes=self._trace_attributes(descriptor)
            )
            reading = read_status(descriptor, response)
            result: Any = None
            if reading.status is OperationStatus.SUCCEEDED:
                final_request = final_resource_request(descriptor, reading)
                if final_request is None:
                    result = decode_result(reading.body, self._deserializer_for(handle))
                else:
                    final_response = self._transport.send(
                        final_request, operation=OP_LRO_FINAL, attributes=self._trace_attributes(descriptor)
                    )
                    result = decode_final_response(final_response, self._deserializer_for(handle))
            return self._commit(handle, response, reading, result)
        finally:
            self._leave_poll(handle)

    def wait(
        self,
        handle: OperationHandle,
        poll_interval: Optional[float] = None,
        cancellation: Optional[threading.Event] = None,
    ) -> Any:
        """
        Block until the operation is terminal and return its result.

        Each iteration sleeps ``max(server retry-after, poll_interval or the default
        interval)`` and then polls. The sleep wakes up as soon as ``cancellation``
        is set; a status check already in flight is not interrupted.

        :param handle: Operation handle to drive.
        :type handle: ~CloudServices.Management.models.operation.OperationHandle
        :param poll_interval: Caller override for the delay between checks. A larger
            server retry hint still wins.
        :type poll_interval: float or None
        :param cancellation: Event that aborts the wait when set.
        :type cancellation: threading.Event or None
        :return: The decoded final resource.
        :raises ~CloudServices.Management.core.errors.OperationFailedError: If the operation failed.
            Repeated waits raise the same error without polling again.
        :raises ~CloudServices.Management.core.errors.OperationCancelledError: If cancelled.
        """
        while not handle.is_terminal:
            if cancellation is not None and cancellation.is_set():
                raise OperationCancelledError()
            delay = self._next_delay(handle, poll_interval)
            if delay > 0:
                logger.debug("Waiting %.2fs before next status check of %s", delay, handle.descriptor.status_url)
                if cancellation is not None:
                    if cancellation.wait(delay):
                        raise OperationCancelledError()
                else:
                    time.sleep(delay)
            self.poll(handle)
        return self._outcome(handle)


__all__ = ["OperationPoller"]
