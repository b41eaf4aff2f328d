# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Paged enumeration over continuation-token listings.

- :func:`~CloudServices.Management.paging.pager.pages` / :func:`~CloudServices.Management.paging.pager.items`: blocking.
- :func:`~CloudServices.Management.paging.async_pager.async_pages` /
  :func:`~CloudServices.Management.paging.async_pager.async_items`: asyncio.
- :func:`~CloudServices.Management.paging._decoding.page_from_response`: listing body decoder.
"""

from ._decoding import page_from_response
from .async_pager import AsyncItemIterator, AsyncPageIterator, async_items, async_pages
from .pager import ItemIterator, PageIterator, items, pages

__all__ = [
    "PageIterator",
    "ItemIterator",
    "pages",
    "items",
    "AsyncPageIterator",
    "AsyncItemIterator",
    "async_pages",
    "async_items",
    "page_from_response",
]
