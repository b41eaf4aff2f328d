# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Paged listings namespace."""

from __future__ import annotations

import asyncio
import json
import threading
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

import pandas as pd

from ..common.constants import (
    HEADER_CONTINUATION,
    OP_LIST_FIRST,
    OP_LIST_NEXT,
    OTEL_ATTR_PAGE_INDEX,
    QUERY_MAX_PAGE_SIZE,
)
from ..models.page import Page
from ..models.request import HttpRequest
from ..paging._decoding import ItemDeserializer, page_from_response
from ..paging.async_pager import AsyncItemIterator, AsyncPageIterator
from ..paging.pager import ItemIterator, PageIterator
from ..utils._pandas import items_to_dataframe
from ._urls import build_url, resolve_next_link

if TYPE_CHECKING:
    from ..async_client import AsyncManagementClient
    from ..client import ManagementClient


def _first_page_request(
    client: Any,
    path: str,
    params: Optional[Mapping[str, Any]],
    page_size: Optional[int],
    headers: Optional[Dict[str, str]],
) -> HttpRequest:
    query = dict(params or {})
    if page_size is not None:
        query[QUERY_MAX_PAGE_SIZE] = page_size
    url = build_url(client._base_url, path, query, client._config.api_version)
    return HttpRequest("GET", url, dict(headers or {}))


def _next_page_request(
    client: Any,
    token: Any,
    path: str,
    params: Optional[Mapping[str, Any]],
    page_size: Optional[int],
    headers: Optional[Dict[str, str]],
) -> HttpRequest:
    if isinstance(token, str):
        # Next links already carry api-version and page size
        return HttpRequest("GET", resolve_next_link(client._base_url, token), dict(headers or {}))
    # Structured tokens are replayed against the listing URL
    resumed = dict(headers or {})
    resumed[HEADER_CONTINUATION] = json.dumps(token, separators=(",", ":"))
    return _first_page_request(client, path, params, page_size, resumed)


def _page_attributes(index: int) -> Dict[str, Any]:
    return {OTEL_ATTR_PAGE_INDEX: index}


class ListingsNamespace:
    """
    Paged listings, accessed via ``client.listings``.

    Example::

        for gateway in client.listings.list(
            "/subscriptions/s1/providers/Microsoft.Network/p2sVpnGateways",
            item_deserializer=Gateway.from_dict,
        ):
            print(gateway.name)

        for page in client.listings.list_pages(path, page_size=50):
            print(len(page), page.continuation_token)
    """

    def __init__(self, client: "ManagementClient") -> None:
        self._client = client

    def list_pages(
        self,
        path: str,
        *,
        item_deserializer: Optional[ItemDeserializer] = None,
        page_size: Optional[int] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        cancellation: Optional[threading.Event] = None,
        items_field: Optional[str] = None,
        next_field: Optional[str] = None,
    ) -> PageIterator[Any]:
        """
        Enumerate a listing page by page.

        Nothing is fetched until the first ``next()``. String continuation
        tokens are followed as next links; any other token is sent back to the
        listing URL JSON-encoded in the ``x-ms-continuation`` header.

        :param path: Listing path relative to the client base URL, or an absolute URL.
        :type path: str
        :param item_deserializer: Applied to every item.
        :type item_deserializer: Callable[[Any], Any] or None
        :param page_size: Sent as ``maxpagesize`` on the first request. Services may ignore it.
        :type page_size: int or None
        :param params: Extra query parameters for the first request.
        :type params: dict or None
        :param headers: Extra headers sent on every page request.
        :type headers: dict[str, str] or None
        :param cancellation: Event that stops enumeration before the next fetch.
        :type cancellation: threading.Event or None
        :param items_field: Explicit item array field name.
        :param next_field: Explicit continuation field name.
        :return: Forward-only page cursor.
        :rtype: ~CloudServices.Management.paging.pager.PageIterator
        """
        client = self._client
        fetched = 0

        def first(page_size_hint: Optional[int]) -> Page[Any]:
            nonlocal fetched
            request = _first_page_request(client, path, params, page_size_hint, headers)
            response = client._get_transport().send(request, operation=OP_LIST_FIRST, attributes=_page_attributes(0))
            page = page_from_response(response, item_deserializer, items_field=items_field, next_field=next_field)
            fetched = 1
            return page

        def follow(token: Any, page_size_hint: Optional[int]) -> Page[Any]:
            nonlocal fetched
            request = _next_page_request(client, token, path, params, page_size_hint, headers)
            response = client._get_transport().send(
                request, operation=OP_LIST_NEXT, attributes=_page_attributes(fetched)
            )
            page = page_from_response(response, item_deserializer, items_field=items_field, next_field=next_field)
            fetched += 1
            return page

        return PageIterator(first, follow, page_size, cancellation)

    def list(self, path: str, **kwargs: Any) -> ItemIterator[Any]:
        """
        Enumerate a listing item by item.

        Accepts the same keyword arguments as :meth:`list_pages`.

        :rtype: ~CloudServices.Management.paging.pager.ItemIterator
        """
        return ItemIterator(self.list_pages(path, **kwargs))

    def to_dataframe(self, path: str, columns: Optional[List[str]] = None, **kwargs: Any) -> pd.DataFrame:
        """
        Fetch every page of a listing into a :class:`pandas.DataFrame`.

        OData annotation keys are dropped from each row. Accepts the same keyword
        arguments as :meth:`list_pages`.

        :param path: Listing path relative to the client base URL, or an absolute URL.
        :type path: str
        :param columns: Optional column subset and order.
        :type columns: list[str] or None
        :return: One row per item, empty when the listing is empty.
        :rtype: ~pandas.DataFrame
        """
        return items_to_dataframe(self.list(path, **kwargs), columns)


class AsyncListingsNamespace:
    """Asyncio counterpart of :class:`ListingsNamespace`."""

    def __init__(self, client: "AsyncManagementClient") -> None:
        self._client = client

    def list_pages(
        self,
        path: str,
        *,
        item_deserializer: Optional[ItemDeserializer] = None,
        page_size: Optional[int] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        cancellation: Optional[asyncio.Event] = None,
        items_field: Optional[str] = None,
        next_field: Optional[str] = None,
    ) -> AsyncPageIterator[Any]:
        client = self._client
        fetched = 0

        async def first(page_size_hint: Optional[int]) -> Page[Any]:
            nonlocal fetched
            request = _first_page_request(client, path, params, page_size_hint, headers)
            response = await client._get_transport().send(
                request, operation=OP_LIST_FIRST, attributes=_page_attributes(0)
            )
            page = page_from_response(response, item_deserializer, items_field=items_field, next_field=next_field)
            fetched = 1
            return page

        async def follow(token: Any, page_size_hint: Optional[int]) -> Page[Any]:
            nonlocal fetched
            request = _next_page_request(client, token, path, params, page_size_hint, headers)
            response = await client._get_transport().send(
                request, operation=OP_LIST_NEXT, attributes=_page_attributes(fetched)
            )
            page = page_from_response(response, item_deserializer, items_field=items_field, next_field=next_field)
            fetched += 1
            return page

        return AsyncPageIterator(first, follow, page_size, cancellation)

    def list(self, path: str, **kwargs: Any) -> AsyncItemIterator[Any]:
        return AsyncItemIterator(self.list_pages(path, **kwargs))


__all__ = ["ListingsNamespace", "AsyncListingsNamespace"]
