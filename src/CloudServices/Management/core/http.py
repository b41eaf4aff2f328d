# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
HTTP client with automatic retry logic and timeout handling.

This module provides :class:`HttpClient`, a wrapper around the requests library
that adds configurable retry behavior for transient network errors and
transient status codes, plus :func:`parse_retry_after`, the retry-hint parser
shared with the operation poller.
"""

from __future__ import annotations

import email.utils
import logging
import math
import random
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import requests

from ..common.constants import HEADER_RETRY_AFTER, HEADER_RETRY_AFTER_MS, HEADER_X_MS_RETRY_AFTER_MS
from ._error_codes import TRANSIENT_STATUS_CODES

logger = logging.getLogger(__name__)


def parse_retry_seconds(raw: Any, scale: float = 1.0) -> Optional[float]:
    """
    Convert a numeric retry hint to seconds.

    :param raw: Hint value, a number or numeric string.
    :param scale: Divisor applied first, 1000 for millisecond hints.
    :type scale: float
    :return: Seconds (>= 0), or None when ``raw`` is not a finite number.
    :rtype: float or None
    """
    try:
        seconds = float(raw) / scale
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    return max(0.0, seconds)


def parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[float]:
    """
    Extract a server retry hint in seconds from response headers.

    Millisecond headers (``retry-after-ms``, ``x-ms-retry-after-ms``) take
    precedence over ``Retry-After``, which may hold either delta-seconds or an
    HTTP-date (RFC 7231). Unparseable and non-finite values are ignored.

    :param headers: Response headers. Lookups are expected to be case-insensitive.
    :type headers: Mapping[str, str] or None
    :return: Delay in seconds (>= 0), or None when no usable hint is present.
    :rtype: float or None
    """
    if not headers:
        return None
    for name in (HEADER_RETRY_AFTER_MS, HEADER_X_MS_RETRY_AFTER_MS):
        seconds = parse_retry_seconds(headers.get(name), 1000.0)
        if seconds is not None:
            return seconds
    raw = headers.get(HEADER_RETRY_AFTER)
    if raw is None:
        return None
    seconds = parse_retry_seconds(raw)
    if seconds is not None:
        return seconds
    try:
        when = email.utils.parsedate_to_datetime(str(raw))
    except (TypeError, ValueError, IndexError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def compute_retry_delay(
    attempt: int,
    *,
    base_delay: float,
    max_backoff: float,
    jitter: bool,
    headers: Optional[Mapping[str, str]] = None,
) -> float:
    """Server hint capped at ``max_backoff``, else capped exponential backoff with optional ±25% jitter."""
    hinted = parse_retry_after(headers)
    if hinted is not None:
        return min(hinted, max_backoff)

    delay = min(base_delay * (2**attempt), max_backoff)

    if jitter:
        jitter_range = delay * 0.25
        delay = max(0, delay + random.uniform(-jitter_range, jitter_range))

    return delay


class HttpClient:
    """
    HTTP client with configurable retry logic, timeout handling, and optional session support.

    :param retries: Maximum number of attempts for transient errors. Default is 5.
    :type retries: int or None
    :param backoff: Base delay in seconds between retry attempts. Default is 0.5.
    :type backoff: float or None
    :param timeout: Default request timeout in seconds. If None, uses per-method defaults.
    :type timeout: float or None
    :param max_backoff: Upper bound for any single retry delay. Default is 60.0.
    :type max_backoff: float or None
    :param jitter: Whether to add ±25% jitter to retry delays.
    :type jitter: bool
    :param retry_transient_errors: Whether to retry 429, 502, 503 and 504 responses.
    :type retry_transient_errors: bool
    :param session: Optional requests.Session for connection pooling.
    :type session: requests.Session or None
    """

    def __init__(
        self,
        *,
        retries: Optional[int] = None,
        backoff: Optional[float] = None,
        timeout: Optional[float] = None,
        max_backoff: Optional[float] = None,
        jitter: bool = True,
        retry_transient_errors: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.max_attempts = max(1, retries if retries is not None else 5)
        self.base_delay = backoff if backoff is not None else 0.5
        self.max_backoff = max_backoff if max_backoff is not None else 60.0
        self.default_timeout: Optional[float] = timeout
        self.jitter = jitter
        self.retry_transient_errors = retry_transient_errors
        self.transient_status_codes = set(TRANSIENT_STATUS_CODES)
        self._session = session

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Execute an HTTP request with automatic retry logic and timeout management.

        Applies default timeouts based on HTTP method (120s for POST/PUT/PATCH/DELETE,
        10s for others) and retries on transient network errors and HTTP status codes
        with exponential backoff. Non-transient responses are returned as-is; status
        interpretation belongs to the caller.

        :param method: HTTP method (GET, POST, PUT, DELETE, etc.).
        :type method: str
        :param url: Target URL for the request.
        :type url: str
        :param kwargs: Additional arguments passed to ``requests.request()``.
        :return: HTTP response object.
        :rtype: requests.Response
        :raises requests.exceptions.RequestException: If all retry attempts fail.
        """
        if "timeout" not in kwargs:
            if self.default_timeout is not None:
                kwargs["timeout"] = self.default_timeout
            else:
                m = (method or "").lower()
                kwargs["timeout"] = 120 if m in ("post", "put", "patch", "delete") else 10

        for attempt in range(self.max_attempts):
            try:
                if self._session is not None:
                    response = self._session.request(method, url, **kwargs)
                else:
                    response = requests.request(method, url, **kwargs)
            except requests.exceptions.RequestException as exc:
                if attempt == self.max_attempts - 1:
                    raise
                delay = self._calculate_retry_delay(attempt)
                logger.warning("%s %s failed (%s); retrying in %.2fs", method, url, exc, delay)
                time.sleep(delay)
                continue

            if (
                self.retry_transient_errors
                and response.status_code in self.transient_status_codes
                and attempt < self.max_attempts - 1
            ):
                delay = self._calculate_retry_delay(attempt, response)
                logger.warning("%s %s returned %s; retrying in %.2fs", method, url, response.status_code, delay)
                time.sleep(delay)
                continue

            return response

        raise RuntimeError("Unexpected end of retry loop")

    def _calculate_retry_delay(self, attempt: int, response: Optional[requests.Response] = None) -> float:
        """
        Calculate the delay before the next retry attempt.

        Priority order:

        1. Server retry hint (see :func:`parse_retry_after`), capped at ``max_backoff``.
        2. Exponential backoff ``base_delay * 2**attempt``, capped at ``max_backoff``,
           with ±25% jitter when enabled.

        :param attempt: Zero-based retry attempt number.
        :type attempt: int
        :param response: Response whose headers may carry a retry hint.
        :type response: requests.Response or None
        :return: Delay in seconds, always >= 0.
        :rtype: float
        """
        return compute_retry_delay(
            attempt,
            base_delay=self.base_delay,
            max_backoff=self.max_backoff,
            jitter=self.jitter,
            headers=response.headers if response is not None else None,
        )

    def close(self) -> None:
        """
        Close the HTTP client and release resources.

        If a session was provided, this method closes it. Safe to call multiple times.
        """
        if self._session is not None:
            self._session.close()
            self._session = None


__all__ = ["HttpClient", "parse_retry_after", "parse_retry_seconds", "compute_retry_delay"]
