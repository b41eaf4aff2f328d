# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Asyncio helpers for cancellation-aware sleeps and awaits."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from .errors import OperationCancelledError

T = TypeVar("T")


async def sleep_or_cancel(delay: float, cancellation: Optional[asyncio.Event]) -> bool:
    """Sleep ``delay`` seconds; return True if ``cancellation`` fired first."""
    if cancellation is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancellation.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True


async def run_cancellable(awaitable: Awaitable[T], cancellation: Optional[asyncio.Event]) -> T:
    """
    Await ``awaitable`` unless ``cancellation`` fires first.

    When the event wins, the work is cancelled and awaited before
    :class:`~CloudServices.Management.core.errors.OperationCancelledError` is raised.
    """
    if cancellation is None:
        return await awaitable
    work = asyncio.ensure_future(awaitable)
    watcher = asyncio.ensure_future(cancellation.wait())
    try:
        await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        watcher.cancel()
    if work.done():
        return work.result()
    work.cancel()
    await asyncio.wait({work})
    raise OperationCancelledError()
