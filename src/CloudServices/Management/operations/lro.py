# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Long-running operations namespace."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from ..common.constants import OP_LRO_BEGIN
from ..models.operation import HandleSnapshot, OperationHandle
from ..models.request import HttpRequest
from ..polling._base import DescriptorLike
from ..polling._detection import Deserializer
from ._urls import build_url

if TYPE_CHECKING:
    from ..async_client import AsyncManagementClient
    from ..client import ManagementClient


def _initiating_request(
    client: Any,
    method: str,
    path: str,
    body: Any,
    params: Optional[Mapping[str, Any]],
    headers: Optional[Dict[str, str]],
) -> HttpRequest:
    url = build_url(client._base_url, path, params, client._config.api_version)
    return HttpRequest(method, url, dict(headers or {}), body)


class OperationsNamespace:
    """
    Long-running operations, accessed via ``client.operations``.

    Example::

        handle = client.operations.begin(
            "PUT",
            "/subscriptions/s1/resourceGroups/rg/providers/Microsoft.Network/p2sVpnGateways/gw1",
            body={"location": "westus"},
            deserializer=Gateway.from_dict,
        )
        gateway = client.operations.wait(handle)

    Persist and resume::

        saved = handle.descriptor.to_json()
        handle = client.operations.resume(saved, deserializer=Gateway.from_dict)
        client.operations.wait(handle)
    """

    def __init__(self, client: "ManagementClient") -> None:
        self._client = client

    def begin(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        deserializer: Optional[Deserializer] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> OperationHandle:
        """
        Send the initiating request and return a handle for the started operation.

        :param method: HTTP method, typically ``PUT``, ``PATCH``, ``POST`` or ``DELETE``.
        :type method: str
        :param path: Resource path relative to the client base URL, or an absolute URL.
        :type path: str
        :param body: JSON request body.
        :param deserializer: Converts the final resource JSON into the result value.
        :type deserializer: Callable[[Any], Any] or None
        :param params: Extra query parameters. ``api-version`` from the client config is added.
        :type params: dict or None
        :param headers: Extra request headers.
        :type headers: dict[str, str] or None
        :return: Handle in ``Running`` state, or terminal when the service completed synchronously.
        :rtype: ~CloudServices.Management.models.operation.OperationHandle
        :raises ~CloudServices.Management.core.errors.HttpError: If the initiating request is rejected.
        :raises ~CloudServices.Management.core.errors.UnsupportedOperationShapeError:
            If the response does not describe a long-running operation.
        """
        request = _initiating_request(self._client, method, path, body, params, headers)
        response = self._client._get_transport().send(request, operation=OP_LRO_BEGIN)
        return self._client._get_poller().start(response, request, deserializer)

    def poll(self, handle: OperationHandle) -> HandleSnapshot:
        """Issue one status check. See :meth:`~CloudServices.Management.polling.poller.OperationPoller.poll`."""
        return self._client._get_poller().poll(handle)

    def wait(
        self,
        handle: OperationHandle,
        poll_interval: Optional[float] = None,
        cancellation: Optional[threading.Event] = None,
    ) -> Any:
        """Block until terminal. See :meth:`~CloudServices.Management.polling.poller.OperationPoller.wait`."""
        return self._client._get_poller().wait(handle, poll_interval, cancellation)

    def has_completed(self, handle: OperationHandle) -> bool:
        return handle.is_terminal

    def resume(self, descriptor: DescriptorLike, deserializer: Optional[Deserializer] = None) -> OperationHandle:
        """Rebuild a handle from a saved descriptor. No network call is made."""
        return self._client._get_poller().resume(descriptor, deserializer)


class AsyncOperationsNamespace:
    """Asyncio counterpart of :class:`OperationsNamespace`, accessed via ``client.operations``."""

    def __init__(self, client: "AsyncManagementClient") -> None:
        self._client = client

    async def begin(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        deserializer: Optional[Deserializer] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> OperationHandle:
        request = _initiating_request(self._client, method, path, body, params, headers)
        response = await self._client._get_transport().send(request, operation=OP_LRO_BEGIN)
        return self._client._get_poller().start(response, request, deserializer)

    async def poll(self, handle: OperationHandle) -> HandleSnapshot:
        return await self._client._get_poller().poll(handle)

    async def wait(
        self,
        handle: OperationHandle,
        poll_interval: Optional[float] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> Any:
        return await self._client._get_poller().wait(handle, poll_interval, cancellation)

    def has_completed(self, handle: OperationHandle) -> bool:
        return handle.is_terminal

    def resume(self, descriptor: DescriptorLike, deserializer: Optional[Deserializer] = None) -> OperationHandle:
        return self._client._get_poller().resume(descriptor, deserializer)


__all__ = ["OperationsNamespace", "AsyncOperationsNamespace"]
