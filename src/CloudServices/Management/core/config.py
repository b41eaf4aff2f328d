# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from ..common.constants import DEFAULT_POLLING_INTERVAL

if TYPE_CHECKING:
    from .telemetry import TelemetryConfig


@dataclass(frozen=True)
class ManagementConfig:
    """
    Configuration settings for management client operations.

    :param api_version: Value sent as the ``api-version`` query parameter on initiating
        requests and first-page listing requests. Omitted when None.
    :type api_version: str or None
    :param polling_interval: Default delay in seconds between status checks when the
        service gives no retry hint (default: 10.0).
    :type polling_interval: float
    :param http_retries: Maximum number of retry attempts for HTTP requests (default: 5).
    :type http_retries: int or None
    :param http_backoff: Base delay in seconds for exponential backoff (default: 0.5).
    :type http_backoff: float or None
    :param http_max_backoff: Maximum delay between retry attempts in seconds (default: 60.0).
    :type http_max_backoff: float or None
    :param http_timeout: Request timeout in seconds (default: method-dependent).
    :type http_timeout: float or None
    :param http_jitter: Whether to add jitter to retry delays to prevent thundering herd (default: True).
    :type http_jitter: bool or None
    :param http_retry_transient_errors: Whether to retry transient HTTP errors like 429, 502, 503, 504 (default: True).
    :type http_retry_transient_errors: bool or None
    :param telemetry: Optional telemetry configuration. Telemetry is disabled when None.
    :type telemetry: ~CloudServices.Management.core.telemetry.TelemetryConfig or None
    """

    api_version: Optional[str] = None
    polling_interval: float = DEFAULT_POLLING_INTERVAL

    # HTTP retry and resilience configuration
    http_retries: Optional[int] = None
    http_backoff: Optional[float] = None
    http_max_backoff: Optional[float] = None
    http_timeout: Optional[float] = None
    http_jitter: Optional[bool] = None
    http_retry_transient_errors: Optional[bool] = None

    telemetry: Optional["TelemetryConfig"] = None

    def __post_init__(self) -> None:
        if self.polling_interval < 0:
            raise ValueError("polling_interval must be >= 0.")

    @classmethod
    def from_env(cls) -> "ManagementConfig":
        """
        Create a configuration instance with default settings.

        :return: Configuration instance with default values.
        :rtype: ~CloudServices.Management.core.config.ManagementConfig
        """
        # Environment-free defaults
        return cls(
            api_version=None,
            polling_interval=DEFAULT_POLLING_INTERVAL,
            http_retries=None,  # Will default to 5 in HttpClient
            http_backoff=None,  # Will default to 0.5 in HttpClient
            http_max_backoff=None,  # Will default to 60.0 in HttpClient
            http_timeout=None,  # Will use method-dependent defaults in HttpClient
            http_jitter=None,  # Will default to True in HttpClient
            http_retry_transient_errors=None,  # Will default to True in HttpClient
        )
