# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Common utilities and constants for the management SDK core.

This module contains shared constants used across the polling and paging layers.
"""

__all__ = []
