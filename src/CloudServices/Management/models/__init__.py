# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Data models for the management SDK core.

- :class:`~CloudServices.Management.models.request.HttpRequest`: Request descriptor.
- :class:`~CloudServices.Management.models.request.ResponseEnvelope`: Status, headers and raw body.
- :class:`~CloudServices.Management.models.operation.OperationHandle`: Long-running operation state.
- :class:`~CloudServices.Management.models.page.Page`: One page of a listing.
- :class:`~CloudServices.Management.models.resource.ResourceModel`: Base for models with
  an additional-properties bag.

Note:
    This ``__init__.py`` does NOT import/export models. Import directly from the
    specific module files.
"""

__all__ = []
