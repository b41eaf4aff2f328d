# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""State handling shared by :class:`OperationPoller` and :class:`AsyncOperationPoller`."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from ..common.constants import DEFAULT_POLLING_INTERVAL, MAX_POLLING_DELAY, OTEL_ATTR_LRO_MODE
from ..core.errors import ConcurrentPollError
from ..models.operation import HandleSnapshot, OperationDescriptor, OperationHandle, OperationStatus
from ..models.request import HttpRequest, ResponseEnvelope
from ._detection import Deserializer, StatusReading, decode_result, detect

logger = logging.getLogger(__name__)

DescriptorLike = Union[OperationDescriptor, Mapping[str, Any], str]


class _PollerBase:
    def __init__(
        self,
        *,
        polling_interval: Optional[float] = None,
        deserializer: Optional[Deserializer] = None,
    ) -> None:
        self.polling_interval = DEFAULT_POLLING_INTERVAL if polling_interval is None else float(polling_interval)
        if self.polling_interval < 0:
            raise ValueError("polling_interval must be >= 0.")
        self._deserializer = deserializer

    def start(
        self,
        initiating_response: ResponseEnvelope,
        request: Optional[HttpRequest] = None,
        deserializer: Optional[Deserializer] = None,
    ) -> OperationHandle:
        """
        Create a handle from the response of the request that started the operation.

        No network call is made. When the initiating response already reports a
        terminal state, the returned handle is terminal.

        :param initiating_response: Response of the initiating request.
        :type initiating_response: ~CloudServices.Management.models.request.ResponseEnvelope
        :param request: The initiating request, when ``initiating_response.request`` is unset.
        :type request: ~CloudServices.Management.models.request.HttpRequest or None
        :param deserializer: Per-operation override of the poller deserializer.
        :type deserializer: Callable[[Any], Any] or None
        :return: A caller-owned handle.
        :rtype: ~CloudServices.Management.models.operation.OperationHandle
        :raises ~CloudServices.Management.core.errors.UnsupportedOperationShapeError:
            If the response carries no recognizable operation indicator.
        :raises ~CloudServices.Management.core.errors.HttpError: If the response is not 2xx.
        """
        descriptor, reading = detect(initiating_response, request)
        handle = OperationHandle(descriptor, deserializer)
        result = None
        if reading.status is OperationStatus.SUCCEEDED:
            result = decode_result(reading.body, self._deserializer_for(handle))
        handle._apply(reading.status, initiating_response, result=result, error=reading.error, retry_after=reading.retry_after)
        logger.debug(
            "Started %s operation %s %s (status=%s)",
            descriptor.mode.value,
            descriptor.initial_method,
            descriptor.initial_url,
            handle.status.value,
        )
        return handle

    def resume(self, descriptor: DescriptorLike, deserializer: Optional[Deserializer] = None) -> OperationHandle:
        """
        Rebuild a ``NotStarted`` handle from a serialized descriptor.

        :param descriptor: An :class:`OperationDescriptor`, its ``to_dict()`` output,
            or its ``to_json()`` output.
        :param deserializer: Per-operation override of the poller deserializer.
        :return: A handle whose first status check is issued without delay by ``wait``.
        :rtype: ~CloudServices.Management.models.operation.OperationHandle
        :raises ~CloudServices.Management.core.errors.MalformedOperationResponseError:
            If the descriptor cannot be parsed.
        """
        if isinstance(descriptor, str):
            descriptor = OperationDescriptor.from_json(descriptor)
        elif not isinstance(descriptor, OperationDescriptor):
            descriptor = OperationDescriptor.from_dict(descriptor)
        logger.debug("Resuming operation at %s", descriptor.status_url)
        return OperationHandle(descriptor, deserializer)

    def _deserializer_for(self, handle: OperationHandle) -> Optional[Deserializer]:
        return handle.deserializer if handle.deserializer is not None else self._deserializer

    @staticmethod
    def has_completed(handle: OperationHandle) -> bool:
        """Whether ``handle`` is ``Succeeded`` or ``Failed``. Never touches the network."""
        return handle.is_terminal

    def _next_delay(self, handle: OperationHandle, poll_interval: Optional[float]) -> float:
        # A resumed handle has never been checked
        if handle.last_response is None:
            return 0.0
        interval = self.polling_interval if poll_interval is None else max(0.0, float(poll_interval))
        server = handle.retry_after
        delay = max(server, interval) if server is not None else interval
        return min(delay, MAX_POLLING_DELAY)

    @staticmethod
    def _enter_poll(handle: OperationHandle) -> None:
        if not handle._poll_lock.acquire(blocking=False):
            raise ConcurrentPollError()

    @staticmethod
    def _leave_poll(handle: OperationHandle) -> None:
        handle._poll_lock.release()

    @staticmethod
    def _trace_attributes(descriptor: OperationDescriptor) -> Dict[str, Any]:
        return {OTEL_ATTR_LRO_MODE: descriptor.mode.value}

    def _commit(self, handle: OperationHandle, response: ResponseEnvelope, reading: StatusReading, result: Any) -> HandleSnapshot:
        status = reading.status
        if status is OperationStatus.NOT_STARTED and handle.status is OperationStatus.RUNNING:
            status = OperationStatus.RUNNING
        handle._apply(status, response, result=result, error=reading.error, retry_after=reading.retry_after)
        logger.debug(
            "Status check %s -> %s (retry_after=%s)",
            handle.descriptor.status_url,
            handle.status.value,
            handle.retry_after,
        )
        return handle.snapshot()

    @staticmethod
    def _outcome(handle: OperationHandle) -> Any:
        if handle.status is OperationStatus.FAILED:
            raise handle.failure()
        return handle.result
