# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from typing import Optional

from azure.core.credentials_async import AsyncTokenCredential

from .core._auth import _AsyncAuthManager, _default_scope
from .core.config import ManagementConfig
from .core.telemetry import create_telemetry_manager
from .core.transport import AioHttpTransport, AsyncTransport
from .operations.listings import AsyncListingsNamespace
from .operations.lro import AsyncOperationsNamespace
from .polling.async_poller import AsyncOperationPoller


class AsyncManagementClient:
    """
    Asyncio client for resource management endpoints.

    Same surface as :class:`~CloudServices.Management.client.ManagementClient`
    with coroutine methods, backed by ``aiohttp``::

        async with AsyncManagementClient("https://management.azure.com", credential) as client:
            handle = await client.operations.begin("DELETE", path)
            await client.operations.wait(handle)

            async for gateway in client.listings.list(path):
                print(gateway["name"])

    :param base_url: Service root. Trailing slash is automatically removed.
    :type base_url: :class:`str`
    :param credential: Asyncio Azure Identity credential.
    :type credential: ~azure.core.credentials_async.AsyncTokenCredential
    :param config: Optional configuration.
    :type config: ~CloudServices.Management.core.config.ManagementConfig or None

    :raises ValueError: If ``base_url`` is missing or empty after trimming.
    """

    def __init__(
        self,
        base_url: str,
        credential: AsyncTokenCredential,
        config: Optional[ManagementConfig] = None,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        if not self._base_url:
            raise ValueError("base_url is required.")
        self.auth = _AsyncAuthManager(credential, _default_scope(self._base_url))
        self._config = config or ManagementConfig.from_env()
        self._telemetry = create_telemetry_manager(self._config.telemetry)
        self._transport: Optional[AsyncTransport] = None
        self._poller: Optional[AsyncOperationPoller] = None

        self.operations = AsyncOperationsNamespace(self)
        self.listings = AsyncListingsNamespace(self)

    async def __aenter__(self) -> "AsyncManagementClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the transport and its ``aiohttp`` session. Safe to call multiple times."""
        if self._transport is not None and hasattr(self._transport, "close"):
            await self._transport.close()
        self._transport = None
        self._poller = None

    def _get_transport(self) -> AsyncTransport:
        if self._transport is None:
            cfg = self._config
            self._transport = AioHttpTransport(
                timeout=cfg.http_timeout,
                retries=cfg.http_retries,
                backoff=cfg.http_backoff,
                max_backoff=cfg.http_max_backoff,
                jitter=cfg.http_jitter if cfg.http_jitter is not None else True,
                retry_transient_errors=(
                    cfg.http_retry_transient_errors if cfg.http_retry_transient_errors is not None else True
                ),
                telemetry=self._telemetry,
                auth_headers=self.auth.headers,
            )
        return self._transport

    def _get_poller(self) -> AsyncOperationPoller:
        if self._poller is None:
            self._poller = AsyncOperationPoller(self._get_transport(), polling_interval=self._config.polling_interval)
        return self._poller


__all__ = ["AsyncManagementClient"]
