# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Pure helpers shared by the blocking and asyncio pollers.

Nothing here performs I/O: these functions inspect response envelopes,
classify them, and decide which request to send next.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from ..common.constants import (
    BODY_ERROR,
    BODY_PROPERTIES,
    BODY_PROVISIONING_STATE,
    BODY_RESOURCE_LOCATION,
    BODY_RETRY_AFTER,
    BODY_STATUS,
    HEADER_LOCATION,
    RESUMABLE_REQUEST_HEADERS,
    STATUS_MONITOR_HEADERS,
)
from ..core import _error_codes as ec
from ..core.errors import (
    MalformedOperationResponseError,
    UnsupportedOperationShapeError,
    http_error_from_response,
)
from ..core.http import parse_retry_after, parse_retry_seconds
from ..models.operation import OperationDescriptor, OperationStatus, PollingMode
from ..models.request import HttpRequest, ResponseEnvelope

Deserializer = Callable[[Any], Any]

_STATUS_VOCABULARY: Dict[str, OperationStatus] = {
    "notstarted": OperationStatus.NOT_STARTED,
    "running": OperationStatus.RUNNING,
    "inprogress": OperationStatus.RUNNING,
    "accepted": OperationStatus.RUNNING,
    "creating": OperationStatus.RUNNING,
    "updating": OperationStatus.RUNNING,
    "deleting": OperationStatus.RUNNING,
    "provisioning": OperationStatus.RUNNING,
    "succeeded": OperationStatus.SUCCEEDED,
    "failed": OperationStatus.FAILED,
    "canceled": OperationStatus.FAILED,
    "cancelled": OperationStatus.FAILED,
}

_CANCELED = {"canceled", "cancelled"}

# Methods whose final resource lives at the initiating URL
_RESOURCE_AT_REQUEST_URL = {"PUT", "PATCH"}


@dataclass(frozen=True)
class StatusReading:
    """Decoded view of one status-check response."""

    status: OperationStatus
    body: Any = None
    error: Optional[Dict[str, Any]] = None
    retry_after: Optional[float] = None
    resource_location: Optional[str] = None
    # True when ``body`` is the final resource itself
    body_is_resource: bool = False


def parse_status(value: Any) -> Tuple[OperationStatus, Optional[Dict[str, Any]]]:
    """
    Map a wire status string to an :class:`OperationStatus`.

    ``Canceled`` / ``Cancelled`` map to ``Failed`` and carry a synthesized error
    detail. Matching is case-insensitive.

    :raises ~CloudServices.Management.core.errors.MalformedOperationResponseError:
        For non-string or unknown values.
    """
    if not isinstance(value, str):
        raise MalformedOperationResponseError(
            f"Operation status must be a string, got {type(value).__name__}.",
            subcode=ec.OPERATION_STATUS_MISSING,
        )
    key = value.strip().lower()
    status = _STATUS_VOCABULARY.get(key)
    if status is None:
        raise MalformedOperationResponseError(
            f"Unrecognized operation status '{value}'.",
            subcode=ec.OPERATION_STATUS_UNKNOWN,
            details={"status": value},
        )
    if key in _CANCELED:
        return status, {"code": "Canceled", "message": "The operation was canceled by the service."}
    return status, None


def _find_state_field(body: Any) -> Optional[Any]:
    """Return the raw provisioning/status value from a resource or status body, if any."""
    if not isinstance(body, dict):
        return None
    props = body.get(BODY_PROPERTIES)
    if isinstance(props, dict) and BODY_PROVISIONING_STATE in props:
        return props[BODY_PROVISIONING_STATE]
    if BODY_PROVISIONING_STATE in body:
        return body[BODY_PROVISIONING_STATE]
    if BODY_STATUS in body:
        return body[BODY_STATUS]
    return None


def _json_or_none(response: ResponseEnvelope) -> Any:
    if not response.body:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _json_body(response: ResponseEnvelope) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedOperationResponseError(
            f"Status response body is not valid JSON (HTTP {response.status_code}).",
            subcode=ec.OPERATION_BODY_NOT_JSON,
        ) from exc


def _body_retry_after(body: Any) -> Optional[float]:
    if isinstance(body, dict) and BODY_RETRY_AFTER in body:
        return parse_retry_seconds(body[BODY_RETRY_AFTER])
    return None


def retry_hint(response: ResponseEnvelope, body: Any = None) -> Optional[float]:
    """Header hint first, then a ``retryAfter`` body field; None when neither is usable."""
    hinted = parse_retry_after(response.headers)
    if hinted is not None:
        return hinted
    return _body_retry_after(body)


def _error_detail(body: Any) -> Optional[Dict[str, Any]]:
    if isinstance(body, dict):
        err = body.get(BODY_ERROR)
        if isinstance(err, dict):
            return dict(err)
        props = body.get(BODY_PROPERTIES)
        if isinstance(props, dict) and isinstance(props.get(BODY_ERROR), dict):
            return dict(props[BODY_ERROR])
    return None


def detect(
    response: ResponseEnvelope,
    request: Optional[HttpRequest] = None,
) -> Tuple[OperationDescriptor, StatusReading]:
    """
    Classify an initiating response and build the polling descriptor.

    Detection order is header first, then body:

    1. ``Azure-AsyncOperation`` / ``Operation-Location`` -> status monitor.
    2. ``Location`` on a 201/202 -> location polling.
    3. A JSON body with ``properties.provisioningState``, ``provisioningState``
       or ``status`` -> resource-body polling on the initiating URL.

    :param response: The initiating response.
    :param request: The initiating request; defaults to ``response.request``.
    :return: The descriptor and the status implied by the initiating response.
    :raises ~CloudServices.Management.core.errors.HttpError: If the response is not 2xx.
    :raises ~CloudServices.Management.core.errors.UnsupportedOperationShapeError:
        If no indicator is recognized.
    """
    if not response.is_success:
        raise http_error_from_response(response)
    request = request or response.request
    if request is None:
        raise UnsupportedOperationShapeError(
            "Cannot track an operation without its initiating request (method and URL)."
        )

    method = request.method
    resumable = {h.lower() for h in RESUMABLE_REQUEST_HEADERS}
    headers = {k: v for k, v in request.headers.items() if k.lower() in resumable}
    body = _json_or_none(response)
    hint = retry_hint(response, body)
    location = response.headers.get(HEADER_LOCATION)

    for header in STATUS_MONITOR_HEADERS:
        monitor = response.headers.get(header)
        if monitor:
            if method in _RESOURCE_AT_REQUEST_URL:
                final_url: Optional[str] = request.url
            else:
                final_url = location or None
            descriptor = OperationDescriptor(
                initial_method=method,
                initial_url=request.url,
                mode=PollingMode.STATUS_MONITOR,
                status_url=monitor,
                final_url=final_url,
                headers=headers,
            )
            return descriptor, StatusReading(OperationStatus.RUNNING, body=body, retry_after=hint)

    if location and response.status_code in (201, 202):
        descriptor = OperationDescriptor(
            initial_method=method,
            initial_url=request.url,
            mode=PollingMode.LOCATION,
            status_url=location,
            headers=headers,
        )
        return descriptor, StatusReading(OperationStatus.RUNNING, body=body, retry_after=hint)

    raw_state = _find_state_field(body)
    if raw_state is not None:
        status, synthesized = parse_status(raw_state)
        descriptor = OperationDescriptor(
            initial_method=method,
            initial_url=request.url,
            mode=PollingMode.RESOURCE_BODY,
            status_url=request.url,
            headers=headers,
        )
        if status is OperationStatus.NOT_STARTED:
            status = OperationStatus.RUNNING
        error = (_error_detail(body) or synthesized) if status is OperationStatus.FAILED else None
        return descriptor, StatusReading(status, body=body, error=error, retry_after=hint, body_is_resource=True)

    raise UnsupportedOperationShapeError(
        f"{method} {request.url} returned HTTP {response.status_code} without an operation status header "
        "or provisioning state.",
        details={"status_code": response.status_code},
    )


def read_status(descriptor: OperationDescriptor, response: ResponseEnvelope) -> StatusReading:
    """
    Decode one status-check response according to the descriptor's polling mode.

    :raises ~CloudServices.Management.core.errors.HttpError: For non-2xx responses,
        except a 404 while polling a resource being deleted, which means success.
    :raises ~CloudServices.Management.core.errors.MalformedOperationResponseError:
        If the body matches no recognized schema.
    """
    if (
        response.status_code == 404
        and descriptor.mode is PollingMode.RESOURCE_BODY
        and descriptor.initial_method == "DELETE"
    ):
        return StatusReading(OperationStatus.SUCCEEDED, body=None, body_is_resource=True)
    if not response.is_success:
        raise http_error_from_response(response)

    if descriptor.mode is PollingMode.LOCATION:
        body = _json_or_none(response)
        if response.status_code == 202:
            return StatusReading(OperationStatus.RUNNING, body=body, retry_after=retry_hint(response, body))
        return StatusReading(OperationStatus.SUCCEEDED, body=body, body_is_resource=True)

    body = _json_body(response)
    if not isinstance(body, dict):
        raise MalformedOperationResponseError(
            "Status response body must be a JSON object.",
            subcode=ec.OPERATION_BODY_NOT_JSON,
        )
    raw_state = _find_state_field(body)
    if raw_state is None:
        raise MalformedOperationResponseError(
            "Status response body has no 'status' or 'provisioningState' field.",
            subcode=ec.OPERATION_STATUS_MISSING,
            details={"keys": sorted(body)},
        )
    status, synthesized = parse_status(raw_state)
    error = (_error_detail(body) or synthesized) if status is OperationStatus.FAILED else None
    resource_location = body.get(BODY_RESOURCE_LOCATION) if descriptor.mode is PollingMode.STATUS_MONITOR else None
    return StatusReading(
        status,
        body=body,
        error=error,
        retry_after=retry_hint(response, body),
        resource_location=resource_location if isinstance(resource_location, str) and resource_location else None,
        body_is_resource=descriptor.mode is PollingMode.RESOURCE_BODY,
    )


def final_resource_request(descriptor: OperationDescriptor, reading: StatusReading) -> Optional[HttpRequest]:
    """
    Request for the final resource of a succeeded operation, or None when the
    status body already is (or stands in for) the result.
    """
    if reading.body_is_resource:
        return None
    url = reading.resource_location or descriptor.final_url
    if not url:
        return None
    return HttpRequest("GET", url, dict(descriptor.headers))


def decode_result(body: Any, deserializer: Optional[Deserializer]) -> Any:
    """
    Apply ``deserializer`` to a final resource body.

    :raises ~CloudServices.Management.core.errors.MalformedOperationResponseError:
        If the deserializer rejects the body.
    """
    if deserializer is None or body is None:
        return body
    try:
        return deserializer(body)
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedOperationResponseError(
            f"Final resource could not be decoded: {exc}",
            subcode=ec.OPERATION_RESULT_UNDECODABLE,
        ) from exc


def decode_final_response(response: ResponseEnvelope, deserializer: Optional[Deserializer]) -> Any:
    """Check and decode the response of a final-resource fetch."""
    if not response.is_success:
        raise http_error_from_response(response)
    if not response.body:
        return None
    try:
        body = response.json()
    except ValueError as exc:
        raise MalformedOperationResponseError(
            "Final resource body is not valid JSON.",
            subcode=ec.OPERATION_BODY_NOT_JSON,
        ) from exc
    return decode_result(body, deserializer)


def status_check_request(descriptor: OperationDescriptor) -> HttpRequest:
    return HttpRequest("GET", descriptor.status_url, dict(descriptor.headers))
