# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""URL composition shared by the operation namespaces."""

from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..common.constants import QUERY_API_VERSION


def _is_absolute(url: str) -> bool:
    return url.lower().startswith(("http://", "https://"))


def build_url(
    base_url: str,
    path: str,
    params: Optional[Mapping[str, Any]] = None,
    api_version: Optional[str] = None,
) -> str:
    """
    Join ``path`` onto ``base_url`` and append query parameters.

    Absolute ``path`` values are used as-is. ``api_version`` is added as
    ``api-version`` unless the URL already carries one. Parameters whose value
    is None are skipped.

    :param base_url: Service root without trailing slash.
    :type base_url: str
    :param path: Relative resource path or absolute URL.
    :type path: str
    :param params: Extra query parameters.
    :type params: dict or None
    :param api_version: API version to pin on the request.
    :type api_version: str or None
    :return: The composed URL.
    :rtype: str
    """
    if not path:
        raise ValueError("path is required.")
    url = path if _is_absolute(path) else f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    extra = [(k, str(v)) for k, v in (params or {}).items() if v is not None]
    if api_version:
        existing = {k.lower() for k, _ in parse_qsl(urlsplit(url).query, keep_blank_values=True)}
        if QUERY_API_VERSION not in existing and all(k.lower() != QUERY_API_VERSION for k, _ in extra):
            extra.append((QUERY_API_VERSION, api_version))
    if not extra:
        return url
    scheme, netloc, url_path, query, fragment = urlsplit(url)
    query = f"{query}&{urlencode(extra)}" if query else urlencode(extra)
    return urlunsplit((scheme, netloc, url_path, query, fragment))


def resolve_next_link(base_url: str, token: str) -> str:
    """Absolute next links are followed verbatim; relative ones are joined onto ``base_url``."""
    return token if _is_absolute(token) else build_url(base_url, token)


__all__ = ["build_url", "resolve_next_link"]
