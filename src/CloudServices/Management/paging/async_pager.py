# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Asyncio paged enumeration.

Mirrors :mod:`~CloudServices.Management.paging.pager` with coroutine fetchers::

    async for gateway in async_items(async_pages(first, follow)):
        print(gateway["name"])
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Generic, Optional, Tuple, TypeVar

from ..core._cancellation import run_cancellable
from ..core.errors import ConcurrentPageFetchError, OperationCancelledError
from ..models.page import CursorState, Page
from .pager import _check_page

logger = logging.getLogger(__name__)

T = TypeVar("T")

AsyncFirstPageFetcher = Callable[[Optional[int]], Awaitable[Page[T]]]
AsyncNextPageFetcher = Callable[[Any, Optional[int]], Awaitable[Page[T]]]


class AsyncPageIterator(Generic[T]):
    """
    Forward-only asyncio cursor over the pages of one listing.

    Same contract as :class:`~CloudServices.Management.paging.pager.PageIterator`.
    Setting ``cancellation`` also cancels a fetch that is already in flight.

    :param first_page_fetcher: Coroutine function fetching the first page.
    :param next_page_fetcher: Coroutine function fetching the page for a continuation token.
    :param page_size_hint: Optional page size passed through to both fetchers.
    :type page_size_hint: int or None
    :param cancellation: Event that aborts enumeration when set.
    :type cancellation: asyncio.Event or None
    """

    def __init__(
        self,
        first_page_fetcher: AsyncFirstPageFetcher[T],
        next_page_fetcher: AsyncNextPageFetcher[T],
        page_size_hint: Optional[int] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> None:
        self._first = first_page_fetcher
        self._next = next_page_fetcher
        self.page_size_hint = page_size_hint
        self._cancellation = cancellation
        self._state = CursorState.UNINITIALIZED
        self._token: Any = None
        self._current: Optional[Page[T]] = None
        self._fetching = False

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def continuation_token(self) -> Any:
        return self._token

    @property
    def current_page(self) -> Optional[Page[T]]:
        return self._current

    def __aiter__(self) -> "AsyncPageIterator[T]":
        return self

    async def __anext__(self) -> Page[T]:
        if self._state is CursorState.EXHAUSTED:
            raise StopAsyncIteration
        if self._fetching:
            raise ConcurrentPageFetchError()
        self._fetching = True
        try:
            if self._cancellation is not None and self._cancellation.is_set():
                raise OperationCancelledError("Page enumeration was cancelled.")
            if self._state is CursorState.UNINITIALIZED:
                logger.debug("Fetching first page (page_size_hint=%s)", self.page_size_hint)
                page = await run_cancellable(self._first(self.page_size_hint), self._cancellation)
            else:
                logger.debug("Fetching next page")
                page = await run_cancellable(self._next(self._token, self.page_size_hint), self._cancellation)
            _check_page(page)
            self._current = page
            self._token = page.continuation_token
            self._state = CursorState.HAS_PAGE if self._token is not None else CursorState.EXHAUSTED
            return page
        finally:
            self._fetching = False


class AsyncItemIterator(Generic[T]):
    """Flattens an :class:`AsyncPageIterator` into its items."""

    def __init__(self, pages: AsyncPageIterator[T]) -> None:
        self._pages = pages
        self._buffer: Tuple[T, ...] = ()
        self._index = 0

    def by_page(self) -> AsyncIterator[Page[T]]:
        return self._pages

    def __aiter__(self) -> "AsyncItemIterator[T]":
        return self

    async def __anext__(self) -> T:
        while self._index >= len(self._buffer):
            page = await self._pages.__anext__()
            self._buffer = page.items
            self._index = 0
        item = self._buffer[self._index]
        self._index += 1
        return item


def async_pages(
    first_page_fetcher: AsyncFirstPageFetcher[T],
    next_page_fetcher: AsyncNextPageFetcher[T],
    page_size_hint: Optional[int] = None,
    cancellation: Optional[asyncio.Event] = None,
) -> AsyncPageIterator[T]:
    """Create an asyncio page cursor. See :class:`AsyncPageIterator`."""
    return AsyncPageIterator(first_page_fetcher, next_page_fetcher, page_size_hint, cancellation)


def async_items(page_iterator: AsyncPageIterator[T]) -> AsyncItemIterator[T]:
    """Flatten an asyncio page cursor into its items."""
    return AsyncItemIterator(page_iterator)


__all__ = [
    "AsyncPageIterator",
    "AsyncItemIterator",
    "async_pages",
    "async_items",
    "AsyncFirstPageFetcher",
    "AsyncNextPageFetcher",
]
