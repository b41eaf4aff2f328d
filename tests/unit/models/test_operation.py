# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import json

import pytest

from CloudServices.Management.core.errors import MalformedOperationResponseError, OperationFailedError
from CloudServices.Management.models.operation import (
    OperationDescriptor,
    OperationHandle,
    OperationStatus,
    PollingMode,
)
from CloudServices.Management.models.request import ResponseEnvelope


def _descriptor(**overrides):
    values = dict(
        initial_method="PUT",
        initial_url="https://svc/gw/1",
        mode=PollingMode.STATUS_MONITOR,
        status_url="https://svc/ops/123",
        final_url="https://svc/gw/1",
        headers={"x-ms-correlation-request-id": "corr-1"},
    )
    values.update(overrides)
    return OperationDescriptor(**values)


class TestOperationStatus:
    def test_terminal(self):
        assert OperationStatus.SUCCEEDED.is_terminal
        assert OperationStatus.FAILED.is_terminal
        assert not OperationStatus.RUNNING.is_terminal
        assert not OperationStatus.NOT_STARTED.is_terminal


class TestOperationDescriptor:
    def test_json_round_trip(self):
        descriptor = _descriptor()
        restored = OperationDescriptor.from_json(descriptor.to_json())
        assert restored == descriptor

    def test_to_dict_is_versioned(self):
        data = _descriptor().to_dict()
        assert data["version"] == 1
        assert data["mode"] == "status-monitor"

    def test_missing_key_rejected(self):
        data = _descriptor().to_dict()
        del data["status_url"]
        with pytest.raises(MalformedOperationResponseError):
            OperationDescriptor.from_dict(data)

    def test_unknown_mode_rejected(self):
        data = _descriptor().to_dict()
        data["mode"] = "carrier-pigeon"
        with pytest.raises(MalformedOperationResponseError):
            OperationDescriptor.from_dict(data)

    @pytest.mark.parametrize("text", ["not json", json.dumps([1, 2])])
    def test_invalid_json_rejected(self, text):
        with pytest.raises(MalformedOperationResponseError):
            OperationDescriptor.from_json(text)


class TestOperationHandle:
    def test_new_handle_not_started(self):
        handle = OperationHandle(_descriptor())
        assert handle.status is OperationStatus.NOT_STARTED
        assert handle.snapshot().http_status_code is None
        assert not handle.is_terminal

    def test_terminal_is_final(self):
        handle = OperationHandle(_descriptor())
        handle._apply(OperationStatus.SUCCEEDED, ResponseEnvelope(200), result={"id": "r1"})
        with pytest.raises(RuntimeError):
            handle._apply(OperationStatus.RUNNING, ResponseEnvelope(200))
        assert handle.result == {"id": "r1"}

    def test_terminal_snapshot_cached(self):
        handle = OperationHandle(_descriptor())
        handle._apply(OperationStatus.SUCCEEDED, ResponseEnvelope(200), result="r1")
        assert handle.snapshot() is handle.snapshot()

    def test_failure_cached(self):
        handle = OperationHandle(_descriptor())
        handle._apply(
            OperationStatus.FAILED,
            ResponseEnvelope(200),
            error={"code": "Conflict", "message": "Another operation is in progress."},
        )
        failure = handle.failure()
        assert isinstance(failure, OperationFailedError)
        assert failure is handle.failure()
        assert failure.detail["code"] == "Conflict"
        assert failure.message == "Another operation is in progress."

    def test_canceled_by_service_subcode(self):
        handle = OperationHandle(_descriptor())
        handle._apply(OperationStatus.FAILED, ResponseEnvelope(200), error={"code": "Canceled"})
        assert handle.failure().subcode == "operation_canceled_by_service"

    def test_failure_requires_failed_status(self):
        with pytest.raises(RuntimeError):
            OperationHandle(_descriptor()).failure()
