# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Decode a listing response envelope into a :class:`~CloudServices.Management.models.page.Page`."""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..common.constants import PAGE_ITEMS_FIELDS, PAGE_NEXT_FIELDS
from ..core import _error_codes as ec
from ..core.errors import MalformedPageResponseError, http_error_from_response
from ..models.page import Page
from ..models.request import ResponseEnvelope

ItemDeserializer = Callable[[Any], Any]


def page_from_response(
    response: ResponseEnvelope,
    item_deserializer: Optional[ItemDeserializer] = None,
    *,
    items_field: Optional[str] = None,
    next_field: Optional[str] = None,
) -> Page[Any]:
    """
    Build a page from one listing response.

    The item array is read from ``items_field`` when given, else from the first
    of ``value`` / ``items`` present. The continuation token is read from
    ``next_field`` when given, else from the first of ``nextLink``,
    ``@odata.nextLink``, ``odata.nextLink`` or ``continuationToken`` present.
    A null, empty-string or absent token marks the last page. Any other value,
    string or not, is forwarded verbatim and never validated.

    :param response: Listing response.
    :type response: ~CloudServices.Management.models.request.ResponseEnvelope
    :param item_deserializer: Applied to every item, in order.
    :type item_deserializer: Callable[[Any], Any] or None
    :param items_field: Explicit name of the item array field.
    :type items_field: str or None
    :param next_field: Explicit name of the continuation field.
    :type next_field: str or None
    :return: The decoded page.
    :rtype: ~CloudServices.Management.models.page.Page
    :raises ~CloudServices.Management.core.errors.HttpError: If the response is not 2xx.
    :raises ~CloudServices.Management.core.errors.MalformedPageResponseError:
        If the body is not a JSON object with an item array.
    """
    if not response.is_success:
        raise http_error_from_response(response)
    try:
        body = response.json()
    except ValueError as exc:
        raise MalformedPageResponseError(
            f"Listing response body is not valid JSON (HTTP {response.status_code}).",
            subcode=ec.PAGE_BODY_NOT_JSON,
        ) from exc
    if not isinstance(body, dict):
        raise MalformedPageResponseError(
            "Listing response body must be a JSON object.",
            subcode=ec.PAGE_BODY_NOT_JSON,
        )

    candidates = (items_field,) if items_field else PAGE_ITEMS_FIELDS
    field = next((name for name in candidates if name in body), None)
    if field is None or not isinstance(body[field], list):
        raise MalformedPageResponseError(
            f"Listing response has no item array (looked for {', '.join(candidates)}).",
            subcode=ec.PAGE_ITEMS_MISSING,
            details={"keys": sorted(body)},
        )
    raw_items = body[field]

    token: Any = None
    for name in (next_field,) if next_field else PAGE_NEXT_FIELDS:
        value = body.get(name)
        if value is not None and value != "":
            token = value
            break

    if item_deserializer is None:
        items = list(raw_items)
    else:
        try:
            items = [item_deserializer(raw) for raw in raw_items]
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedPageResponseError(
                f"Listing item could not be decoded: {exc}",
                subcode=ec.PAGE_ITEM_UNDECODABLE,
            ) from exc
    return Page.from_values(items, token, response)


__all__ = ["page_from_response"]
