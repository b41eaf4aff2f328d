# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Bearer token helpers backed by Azure Identity credentials."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from azure.core.credentials import TokenCredential
from azure.core.credentials_async import AsyncTokenCredential


@dataclass
class _TokenPair:
    resource: str
    access_token: str


def _default_scope(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/.default"


class _AuthManager:
    """Azure Identity-based authentication helper for management endpoints."""

    def __init__(self, credential: TokenCredential, scope: str) -> None:
        if not isinstance(credential, TokenCredential):
            raise TypeError("credential must implement azure.core.credentials.TokenCredential.")
        self.credential: TokenCredential = credential
        self.scope = scope

    def _acquire_token(self) -> _TokenPair:
        """Acquire an access token for the configured scope using Azure Identity."""
        token = self.credential.get_token(self.scope)
        return _TokenPair(resource=self.scope, access_token=token.token)

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._acquire_token().access_token}"}


class _AsyncAuthManager:
    """Asyncio counterpart of :class:`_AuthManager`."""

    def __init__(self, credential: AsyncTokenCredential, scope: str) -> None:
        if not callable(getattr(credential, "get_token", None)):
            raise TypeError("credential must implement azure.core.credentials_async.AsyncTokenCredential.")
        self.credential: AsyncTokenCredential = credential
        self.scope = scope

    async def _acquire_token(self) -> _TokenPair:
        token = await self.credential.get_token(self.scope)
        return _TokenPair(resource=self.scope, access_token=token.token)

    async def headers(self) -> Dict[str, str]:
        pair = await self._acquire_token()
        return {"Authorization": f"Bearer {pair.access_token}"}
