# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

# HTTP subcode constants
HTTP_400 = "http_400"
HTTP_401 = "http_401"
HTTP_403 = "http_403"
HTTP_404 = "http_404"
HTTP_409 = "http_409"
HTTP_412 = "http_412"
HTTP_429 = "http_429"
HTTP_500 = "http_500"
HTTP_502 = "http_502"
HTTP_503 = "http_503"
HTTP_504 = "http_504"

ALL_HTTP_SUBCODES = {
    HTTP_400,
    HTTP_401,
    HTTP_403,
    HTTP_404,
    HTTP_409,
    HTTP_412,
    HTTP_429,
    HTTP_500,
    HTTP_502,
    HTTP_503,
    HTTP_504,
}

TRANSIENT_STATUS_CODES = {429, 502, 503, 504}

# Response shape subcodes
OPERATION_SHAPE_UNRECOGNIZED = "operation_shape_unrecognized"
OPERATION_BODY_NOT_JSON = "operation_body_not_json"
OPERATION_STATUS_MISSING = "operation_status_missing"
OPERATION_STATUS_UNKNOWN = "operation_status_unknown"
OPERATION_RESULT_UNDECODABLE = "operation_result_undecodable"
OPERATION_DESCRIPTOR_INVALID = "operation_descriptor_invalid"
PAGE_BODY_NOT_JSON = "page_body_not_json"
PAGE_ITEMS_MISSING = "page_items_missing"
PAGE_ITEM_UNDECODABLE = "page_item_undecodable"

# Terminal operation subcodes
OPERATION_FAILED = "operation_failed"
OPERATION_CANCELED_BY_SERVICE = "operation_canceled_by_service"

# State subcodes
STATE_CONCURRENT_POLL = "state_concurrent_poll"
STATE_CONCURRENT_PAGE_FETCH = "state_concurrent_page_fetch"


def _http_subcode(status: int) -> str:
    return f"http_{status}"


def _is_transient_status(status: int) -> bool:
    return status in TRANSIENT_STATUS_CODES
