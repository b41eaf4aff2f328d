# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Page and cursor models for paginated listings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterator, Optional, Sequence, Tuple, TypeVar

from .request import ResponseEnvelope

T = TypeVar("T")


class CursorState(str, Enum):
    """Position of a page enumerator."""

    UNINITIALIZED = "Uninitialized"
    HAS_PAGE = "HasPage"
    EXHAUSTED = "Exhausted"


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    Items returned by a single listing response.

    :param items: Items in server order.
    :type items: tuple
    :param continuation_token: Opaque token for the next page, or None on the last page.
        Usually a next-link URL; any other JSON value is carried unchanged.
    :type continuation_token: Any
    :param raw_response: The response this page was decoded from.
    :type raw_response: ~CloudServices.Management.models.request.ResponseEnvelope or None

    Example::

        for page in pages(first, follow):
            print(f"{len(page)} items, more: {page.has_more}")
            for item in page:
                print(item)
    """

    items: Tuple[T, ...] = ()
    continuation_token: Any = None
    raw_response: Optional[ResponseEnvelope] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    @classmethod
    def from_values(
        cls,
        values: Sequence[T],
        continuation_token: Any,
        raw_response: Optional[ResponseEnvelope] = None,
    ) -> "Page[T]":
        # An empty-string token is treated as absent
        if isinstance(continuation_token, str) and not continuation_token:
            continuation_token = None
        return cls(tuple(values), continuation_token, raw_response)

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]


__all__ = ["CursorState", "Page"]
