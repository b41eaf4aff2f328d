# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Long-running operation state models.

An :class:`OperationHandle` is created by
:meth:`~CloudServices.Management.polling.poller.OperationPoller.start` and is
mutated only by the poller's status-check step. Its
:class:`OperationDescriptor` is the serializable part: a handle rebuilt from
the descriptor alone can resume polling in another process.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from ..core import _error_codes as ec
from ..core.errors import MalformedOperationResponseError, OperationFailedError
from .request import ResponseEnvelope

_DESCRIPTOR_VERSION = 1


class OperationStatus(str, Enum):
    """Lifecycle status of a long-running operation."""

    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationStatus.SUCCEEDED, OperationStatus.FAILED)


class PollingMode(str, Enum):
    """How status checks are issued for an operation."""

    STATUS_MONITOR = "status-monitor"
    LOCATION = "location"
    RESOURCE_BODY = "resource-body"


@dataclass(frozen=True)
class OperationDescriptor:
    """
    Everything needed to issue status checks for an operation.

    The original request body is never captured; status checks are plain GETs.

    :param initial_method: HTTP method of the initiating request.
    :type initial_method: str
    :param initial_url: URL of the initiating request.
    :type initial_url: str
    :param mode: Polling convention detected from the initiating response.
    :type mode: ~CloudServices.Management.models.operation.PollingMode
    :param status_url: URL every status check is sent to.
    :type status_url: str
    :param final_url: URL of the final resource when it must be fetched separately.
    :type final_url: str or None
    :param headers: Headers re-sent on every status check.
    :type headers: dict[str, str]
    """

    initial_method: str
    initial_url: str
    mode: PollingMode
    status_url: str
    final_url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": _DESCRIPTOR_VERSION,
            "initial_method": self.initial_method,
            "initial_url": self.initial_url,
            "mode": self.mode.value,
            "status_url": self.status_url,
            "final_url": self.final_url,
            "headers": dict(self.headers),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OperationDescriptor":
        """
        Rebuild a descriptor from :meth:`to_dict` output.

        :raises ~CloudServices.Management.core.errors.MalformedOperationResponseError:
            If required keys are missing or the polling mode is unknown.
        """
        try:
            return cls(
                initial_method=str(data["initial_method"]).upper(),
                initial_url=str(data["initial_url"]),
                mode=PollingMode(data["mode"]),
                status_url=str(data["status_url"]),
                final_url=data.get("final_url"),
                headers=dict(data.get("headers") or {}),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedOperationResponseError(
                f"Invalid operation descriptor: {exc}",
                subcode=ec.OPERATION_DESCRIPTOR_INVALID,
            ) from exc

    @classmethod
    def from_json(cls, text: str) -> "OperationDescriptor":
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise MalformedOperationResponseError(
                "Operation descriptor is not valid JSON.",
                subcode=ec.OPERATION_DESCRIPTOR_INVALID,
            ) from exc
        if not isinstance(data, dict):
            raise MalformedOperationResponseError(
                "Operation descriptor must be a JSON object.",
                subcode=ec.OPERATION_DESCRIPTOR_INVALID,
            )
        return cls.from_dict(data)


@dataclass(frozen=True)
class HandleSnapshot:
    """
    Point-in-time view of an :class:`OperationHandle`.

    :param status: Operation status at snapshot time.
    :param result: Decoded final resource; set only when ``status`` is ``Succeeded``.
    :param error: Service error detail; set only when ``status`` is ``Failed``.
    :param retry_after: Server-suggested delay in seconds before the next status check.
    :param http_status_code: Status code of the last observed response.
    """

    status: OperationStatus
    result: Any = None
    error: Optional[Dict[str, Any]] = None
    retry_after: Optional[float] = None
    http_status_code: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class OperationHandle:
    """
    Caller-owned state of one long-running operation.

    Status transitions are monotonic: once ``Succeeded`` or ``Failed`` the
    handle never changes again. Issuing concurrent polls on the same handle is
    a caller error and is rejected with
    :class:`~CloudServices.Management.core.errors.ConcurrentPollError`.

    :param descriptor: Serializable polling descriptor.
    :type descriptor: ~CloudServices.Management.models.operation.OperationDescriptor
    :param deserializer: Converts the final resource JSON into the result. Not serialized;
        a resumed handle must be given it again.
    :type deserializer: Callable[[Any], Any] or None
    """

    def __init__(self, descriptor: OperationDescriptor, deserializer: Optional[Callable[[Any], Any]] = None) -> None:
        self.descriptor = descriptor
        self.deserializer = deserializer
        self.status = OperationStatus.NOT_STARTED
        self.last_response: Optional[ResponseEnvelope] = None
        self.result: Any = None
        self.error: Optional[Dict[str, Any]] = None
        self.retry_after: Optional[float] = None
        self._failure: Optional[OperationFailedError] = None
        self._terminal_snapshot: Optional[HandleSnapshot] = None
        self._poll_lock = threading.Lock()

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def snapshot(self) -> HandleSnapshot:
        if self._terminal_snapshot is not None:
            return self._terminal_snapshot
        snap = HandleSnapshot(
            status=self.status,
            result=self.result,
            error=self.error,
            retry_after=self.retry_after,
            http_status_code=self.last_response.status_code if self.last_response is not None else None,
        )
        if self.is_terminal:
            self._terminal_snapshot = snap
        return snap

    def failure(self) -> OperationFailedError:
        """Return the cached terminal failure, creating it on first use."""
        if self.status is not OperationStatus.FAILED:
            raise RuntimeError("Operation has not failed.")
        if self._failure is None:
            detail = self.error or {}
            message = detail.get("message") or f"Operation at {self.descriptor.initial_url} failed."
            subcode = ec.OPERATION_CANCELED_BY_SERVICE if detail.get("code") == "Canceled" else None
            self._failure = OperationFailedError(str(message), detail=detail, subcode=subcode)
        return self._failure

    def _apply(
        self,
        status: OperationStatus,
        response: ResponseEnvelope,
        *,
        result: Any = None,
        error: Optional[Dict[str, Any]] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Operation handle is already terminal ({self.status.value}).")
        self.last_response = response
        self.retry_after = retry_after
        if status is OperationStatus.SUCCEEDED:
            self.result = result
        elif status is OperationStatus.FAILED:
            self.error = dict(error or {})
        self.status = status

    def __repr__(self) -> str:
        return f"OperationHandle(status={self.status.value!r}, status_url={self.descriptor.status_url!r})"


__all__ = [
    "OperationStatus",
    "PollingMode",
    "OperationDescriptor",
    "HandleSnapshot",
    "OperationHandle",
]
