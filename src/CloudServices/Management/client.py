# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from typing import Optional

import requests

from azure.core.credentials import TokenCredential

from .core._auth import _AuthManager, _default_scope
from .core.config import ManagementConfig
from .core.http import HttpClient
from .core.telemetry import create_telemetry_manager
from .core.transport import RequestsTransport, Transport
from .operations.listings import ListingsNamespace
from .operations.lro import OperationsNamespace
from .polling.poller import OperationPoller


class ManagementClient:
    """
    High-level blocking client for resource management endpoints.

    The client authenticates through Azure Identity, builds request URLs from
    ``base_url`` and exposes the two core building blocks of generated service
    clients: long-running operations and paged listings.

    **Context Manager Support (Recommended)**:
        Using the client as a context manager enables connection pooling and
        guarantees the HTTP session is released::

            with ManagementClient("https://management.azure.com", credential) as client:
                handle = client.operations.begin("PUT", path, body=payload)
                client.operations.wait(handle)

    **Without Context Manager**:
        Resources are created lazily on first use. Call ``close()`` when done::

            client = ManagementClient("https://management.azure.com", credential)
            try:
                for gateway in client.listings.list(path):
                    print(gateway["name"])
            finally:
                client.close()

    Namespaces:

    - ``client.operations``: begin, poll, wait, has_completed and resume long-running operations
    - ``client.listings``: enumerate paged listings by item or by page

    :param base_url: Service root, for example ``"https://management.azure.com"``.
        Trailing slash is automatically removed. The token scope is ``{base_url}/.default``.
    :type base_url: :class:`str`
    :param credential: Azure Identity credential for authentication.
    :type credential: ~azure.core.credentials.TokenCredential
    :param config: Optional configuration for api-version, polling interval, timeouts and retries.
        If not provided, defaults are loaded from :meth:`~CloudServices.Management.core.config.ManagementConfig.from_env`.
    :type config: ~CloudServices.Management.core.config.ManagementConfig or None

    :raises ValueError: If ``base_url`` is missing or empty after trimming.
    :raises TypeError: If ``credential`` is not a ``TokenCredential``.
    """

    def __init__(
        self,
        base_url: str,
        credential: TokenCredential,
        config: Optional[ManagementConfig] = None,
    ) -> None:
        self._base_url = (base_url or "").rstrip("/")
        if not self._base_url:
            raise ValueError("base_url is required.")
        self.auth = _AuthManager(credential, _default_scope(self._base_url))
        self._config = config or ManagementConfig.from_env()
        self._telemetry = create_telemetry_manager(self._config.telemetry)
        self._transport: Optional[Transport] = None
        self._poller: Optional[OperationPoller] = None
        self._session: Optional[requests.Session] = None
        self._owns_session: bool = False

        self.operations = OperationsNamespace(self)
        self.listings = ListingsNamespace(self)

    def __enter__(self) -> "ManagementClient":
        """
        Enter the context manager.

        Creates an HTTP session for connection pooling shared by every request
        issued inside the block. A transport built before entry is closed and
        rebuilt on first use so that it picks up the session.

        :return: The client instance.
        :rtype: ManagementClient
        """
        if self._session is None:
            self._session = requests.Session()
            self._owns_session = True
            if self._transport is not None and hasattr(self._transport, "close"):
                self._transport.close()
            self._transport = None
            self._poller = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """
        Close the client and release resources.

        Safe to call multiple times. Operation handles remain valid and can be
        resumed by another client through their descriptor.
        """
        if self._transport is not None and hasattr(self._transport, "close"):
            self._transport.close()
        self._transport = None
        self._poller = None
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None
            self._owns_session = False

    def _get_transport(self) -> Transport:
        """
        Get or create the transport used by every namespace.

        :return: The lazily-initialized transport.
        :rtype: ~CloudServices.Management.core.transport.Transport
        """
        if self._transport is None:
            cfg = self._config
            http = HttpClient(
                retries=cfg.http_retries,
                backoff=cfg.http_backoff,
                timeout=cfg.http_timeout,
                max_backoff=cfg.http_max_backoff,
                jitter=cfg.http_jitter if cfg.http_jitter is not None else True,
                retry_transient_errors=(
                    cfg.http_retry_transient_errors if cfg.http_retry_transient_errors is not None else True
                ),
                session=self._session,
            )
            self._transport = RequestsTransport(http, telemetry=self._telemetry, auth_headers=self.auth.headers)
        return self._transport

    def _get_poller(self) -> OperationPoller:
        if self._poller is None:
            self._poller = OperationPoller(self._get_transport(), polling_interval=self._config.polling_interval)
        return self._poller


__all__ = ["ManagementClient"]
