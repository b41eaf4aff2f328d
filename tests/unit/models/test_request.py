# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import pytest

from CloudServices.Management.models.request import HttpRequest, ResponseEnvelope


class TestHttpRequest:
    def test_method_upper_cased(self):
        assert HttpRequest("put", "https://svc/gw/1").method == "PUT"

    def test_url_required(self):
        with pytest.raises(ValueError):
            HttpRequest("GET", "")

    def test_headers_copied_on_construction(self):
        headers = {"a": "1"}
        request = HttpRequest("GET", "https://svc/gw/1", headers)
        headers["b"] = "2"
        assert request.headers == {"a": "1"}

    def test_missing_method_defaults_to_get(self):
        assert HttpRequest(None, "https://svc/gw/1").method == "GET"


class TestResponseEnvelope:
    def test_headers_case_insensitive(self):
        response = ResponseEnvelope(202, {"Azure-AsyncOperation": "https://svc/ops/1"})
        assert response.headers["azure-asyncoperation"] == "https://svc/ops/1"

    def test_from_json(self):
        response = ResponseEnvelope.from_json(200, {"status": "Running"})
        assert response.json() == {"status": "Running"}
        assert response.is_success

    def test_empty_body_json_raises(self):
        with pytest.raises(ValueError):
            ResponseEnvelope(204).json()

    def test_string_body_encoded(self):
        response = ResponseEnvelope(500, body="oops")
        assert response.body == b"oops"
        assert response.text() == "oops"
        assert not response.is_success
