# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Core infrastructure components for the management SDK.

This package contains configuration, the structured error hierarchy, the
retrying HTTP client, transports, request metadata and telemetry.
"""

from .results import RequestMetadata

__all__ = ["RequestMetadata"]
