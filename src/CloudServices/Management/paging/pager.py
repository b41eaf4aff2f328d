# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Blocking paged enumeration.

:func:`pages` returns a forward-only cursor over the pages of a listing and
:func:`items` flattens it. Both are explicit iterator objects rather than
generators: when a fetch raises, the cursor stays where it was and the next
``next()`` call re-issues the identical fetch.

Example::

    def first(page_size):
        return page_from_response(transport.send(HttpRequest("GET", url)))

    def follow(token, page_size):
        return page_from_response(transport.send(HttpRequest("GET", token)))

    for gateway in items(pages(first, follow)):
        print(gateway["name"])
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, Tuple, TypeVar, Union

from ..core.errors import ConcurrentPageFetchError, MalformedPageResponseError, OperationCancelledError
from ..models.page import CursorState, Page

logger = logging.getLogger(__name__)

T = TypeVar("T")

FirstPageFetcher = Callable[[Optional[int]], Page[T]]
NextPageFetcher = Callable[[Any, Optional[int]], Page[T]]


def _check_page(page: object) -> None:
    if not isinstance(page, Page):
        raise MalformedPageResponseError(f"Page fetcher returned {type(page).__name__}, expected Page.")


class PageIterator(Generic[T]):
    """
    Forward-only, non-restartable cursor over the pages of one listing.

    The first ``next()`` calls ``first_page_fetcher(page_size_hint)``; every later
    call passes the previous page's continuation token verbatim to
    ``next_page_fetcher(token, page_size_hint)``. Iteration stops after the
    first page without a token, and no further fetch is ever issued.

    A single instance must be advanced by one caller at a time; overlapping
    ``next()`` calls raise :class:`~CloudServices.Management.core.errors.ConcurrentPageFetchError`.

    :param first_page_fetcher: Fetches the first page.
    :param next_page_fetcher: Fetches the page for a continuation token.
    :param page_size_hint: Optional page size passed through to both fetchers.
    :type page_size_hint: int or None
    :param cancellation: Event checked before every fetch.
    :type cancellation: threading.Event or None
    """

    def __init__(
        self,
        first_page_fetcher: FirstPageFetcher[T],
        next_page_fetcher: NextPageFetcher[T],
        page_size_hint: Optional[int] = None,
        cancellation: Optional[threading.Event] = None,
    ) -> None:
        self._first = first_page_fetcher
        self._next = next_page_fetcher
        self.page_size_hint = page_size_hint
        self._cancellation = cancellation
        self._state = CursorState.UNINITIALIZED
        self._token: Any = None
        self._current: Optional[Page[T]] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def continuation_token(self) -> Any:
        """Token the next fetch will use; None before the first fetch and once exhausted."""
        return self._token

    @property
    def current_page(self) -> Optional[Page[T]]:
        return self._current

    def __iter__(self) -> "PageIterator[T]":
        return self

    def __next__(self) -> Page[T]:
        if self._state is CursorState.EXHAUSTED:
            raise StopIteration
        if not self._lock.acquire(blocking=False):
            raise ConcurrentPageFetchError()
        try:
            if self._cancellation is not None and self._cancellation.is_set():
                raise OperationCancelledError("Page enumeration was cancelled.")
            if self._state is CursorState.UNINITIALIZED:
                logger.debug("Fetching first page (page_size_hint=%s)", self.page_size_hint)
                page = self._first(self.page_size_hint)
            else:
                logger.debug("Fetching next page")
                page = self._next(self._token, self.page_size_hint)
            _check_page(page)
            self._advance(page)
            return page
        finally:
            self._lock.release()

    def _advance(self, page: Page[T]) -> None:
        self._current = page
        self._token = page.continuation_token
        self._state = CursorState.HAS_PAGE if self._token is not None else CursorState.EXHAUSTED


class ItemIterator(Generic[T]):
    """
    Flattens a :class:`PageIterator` into its items, page order then item order.

    A fetch failure at a page boundary propagates from ``next()`` and leaves the
    position unchanged, so calling ``next()`` again retries that page.

    :param pages: Page cursor to flatten.
    :type pages: ~CloudServices.Management.paging.pager.PageIterator
    """

    def __init__(self, pages: Union[PageIterator[T], Iterable[Page[T]]]) -> None:
        self._pages: Iterator[Page[T]] = iter(pages)
        self._buffer: Tuple[T, ...] = ()
        self._index = 0

    def by_page(self) -> Iterator[Page[T]]:
        """Return the underlying page cursor. Items already buffered from its current page are skipped."""
        return self._pages

    def __iter__(self) -> "ItemIterator[T]":
        return self

    def __next__(self) -> T:
        while self._index >= len(self._buffer):
            page = next(self._pages)
            self._buffer = page.items
            self._index = 0
        item = self._buffer[self._index]
        self._index += 1
        return item


def pages(
    first_page_fetcher: FirstPageFetcher[T],
    next_page_fetcher: NextPageFetcher[T],
    page_size_hint: Optional[int] = None,
    cancellation: Optional[threading.Event] = None,
) -> PageIterator[T]:
    """Create a page cursor. See :class:`PageIterator`."""
    return PageIterator(first_page_fetcher, next_page_fetcher, page_size_hint, cancellation)


def items(page_iterator: Union[PageIterator[T], Iterable[Page[T]]]) -> ItemIterator[T]:
    """Flatten a page cursor into its items. See :class:`ItemIterator`."""
    return ItemIterator(page_iterator)


__all__ = ["PageIterator", "ItemIterator", "pages", "items", "FirstPageFetcher", "NextPageFetcher"]
