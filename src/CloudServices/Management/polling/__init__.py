# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Long-running operation polling.

- :class:`~CloudServices.Management.polling.poller.OperationPoller`: blocking poller.
- :class:`~CloudServices.Management.polling.async_poller.AsyncOperationPoller`: asyncio poller.
"""

from .async_poller import AsyncOperationPoller
from .poller import OperationPoller

__all__ = ["OperationPoller", "AsyncOperationPoller"]
