# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Operation namespace classes for the management client.

- OperationsNamespace / AsyncOperationsNamespace: long-running operations (``client.operations``)
- ListingsNamespace / AsyncListingsNamespace: paged listings (``client.listings``)
"""

__all__ = []
