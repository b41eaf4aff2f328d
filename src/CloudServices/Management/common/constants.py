# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Wire-level constants for long-running operations and paginated listings.

Header and field names are matched case-insensitively by the code that
consumes them; the spelling here is the canonical one services emit.
"""

# Status-monitor headers, in detection order
HEADER_AZURE_ASYNC_OPERATION = "Azure-AsyncOperation"
HEADER_OPERATION_LOCATION = "Operation-Location"
STATUS_MONITOR_HEADERS = (HEADER_AZURE_ASYNC_OPERATION, HEADER_OPERATION_LOCATION)

HEADER_LOCATION = "Location"

# Retry hints
HEADER_RETRY_AFTER = "Retry-After"
HEADER_RETRY_AFTER_MS = "retry-after-ms"
HEADER_X_MS_RETRY_AFTER_MS = "x-ms-retry-after-ms"
BODY_RETRY_AFTER = "retryAfter"

# Request tracing
HEADER_CLIENT_REQUEST_ID = "x-ms-client-request-id"
HEADER_CORRELATION_ID = "x-ms-correlation-request-id"
HEADER_SERVICE_REQUEST_ID = "x-ms-request-id"

# Headers copied from the initiating request onto every status check
RESUMABLE_REQUEST_HEADERS = (
    HEADER_CLIENT_REQUEST_ID,
    HEADER_CORRELATION_ID,
    "x-ms-tenant-id",
)

# Status body fields
BODY_STATUS = "status"
BODY_PROVISIONING_STATE = "provisioningState"
BODY_PROPERTIES = "properties"
BODY_ERROR = "error"
BODY_RESOURCE_LOCATION = "resourceLocation"

# Listing body fields, in lookup order
PAGE_ITEMS_FIELDS = ("value", "items")
PAGE_NEXT_FIELDS = ("nextLink", "@odata.nextLink", "odata.nextLink", "continuationToken")

# Query parameters
QUERY_API_VERSION = "api-version"
QUERY_MAX_PAGE_SIZE = "maxpagesize"

DEFAULT_POLLING_INTERVAL = 10.0

# Upper bound for one wait between status checks, whatever the server hints
MAX_POLLING_DELAY = 86400.0

# Carries a non-link continuation token, JSON-encoded
HEADER_CONTINUATION = "x-ms-continuation"

# Transport operation names
OP_LRO_BEGIN = "lro.begin"
OP_LRO_POLL = "lro.poll"
OP_LRO_FINAL = "lro.final"
OP_LIST_FIRST = "list.first"
OP_LIST_NEXT = "list.next"

# OpenTelemetry semantic convention attribute names
OTEL_ATTR_HTTP_METHOD = "http.request.method"
OTEL_ATTR_HTTP_URL = "url.full"
OTEL_ATTR_HTTP_STATUS_CODE = "http.response.status_code"
OTEL_ATTR_MGMT_OPERATION = "cloudservices.operation"
OTEL_ATTR_MGMT_REQUEST_ID = "cloudservices.client_request_id"
OTEL_ATTR_MGMT_CORRELATION_ID = "cloudservices.correlation_id"
OTEL_ATTR_MGMT_SERVICE_REQUEST_ID = "cloudservices.service_request_id"
OTEL_ATTR_LRO_MODE = "cloudservices.lro.mode"
OTEL_ATTR_RETRY_AFTER = "cloudservices.retry_after"
OTEL_ATTR_PAGE_INDEX = "cloudservices.page.index"
