# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import pytest

from conftest import json_response
from fixtures.test_data import SAMPLE_ERROR_RESPONSE, SAMPLE_LIST_PAGE_1, SAMPLE_LIST_PAGE_2

from CloudServices.Management.core.errors import HttpError, MalformedPageResponseError
from CloudServices.Management.models.request import ResponseEnvelope
from CloudServices.Management.paging import page_from_response


class TestPageFromResponse:
    def test_value_and_next_link(self):
        response = json_response(200, SAMPLE_LIST_PAGE_1)
        page = page_from_response(response)
        assert [i["name"] for i in page] == ["gw1", "gw2"]
        assert page.continuation_token == SAMPLE_LIST_PAGE_1["nextLink"]
        assert page.raw_response is response

    def test_null_next_link_is_last_page(self):
        page = page_from_response(json_response(200, SAMPLE_LIST_PAGE_2))
        assert page.continuation_token is None

    def test_items_field_and_odata_next_link(self):
        page = page_from_response(json_response(200, {"items": [1, 2], "@odata.nextLink": "tok1"}))
        assert page.items == (1, 2)
        assert page.continuation_token == "tok1"

    def test_continuation_token_field(self):
        page = page_from_response(json_response(200, {"value": [], "continuationToken": "abc"}))
        assert page.continuation_token == "abc"
        assert len(page) == 0

    def test_explicit_fields(self):
        page = page_from_response(
            json_response(200, {"gateways": [1], "next": "n1", "value": [9]}),
            items_field="gateways",
            next_field="next",
        )
        assert page.items == (1,)
        assert page.continuation_token == "n1"

    def test_item_deserializer(self):
        page = page_from_response(json_response(200, SAMPLE_LIST_PAGE_2), lambda d: d["name"].upper())
        assert page.items == ("GW3",)

    def test_item_deserializer_failure(self):
        with pytest.raises(MalformedPageResponseError) as exc_info:
            page_from_response(json_response(200, {"value": [{}]}), lambda d: d["name"])
        assert exc_info.value.subcode == "page_item_undecodable"

    def test_missing_items(self):
        with pytest.raises(MalformedPageResponseError) as exc_info:
            page_from_response(json_response(200, {"nextLink": "x"}))
        assert exc_info.value.subcode == "page_items_missing"

    def test_items_not_a_list(self):
        with pytest.raises(MalformedPageResponseError):
            page_from_response(json_response(200, {"value": {"name": "gw1"}}))

    def test_non_object_body(self):
        with pytest.raises(MalformedPageResponseError):
            page_from_response(json_response(200, [1, 2, 3]))

    def test_non_json_body(self):
        with pytest.raises(MalformedPageResponseError) as exc_info:
            page_from_response(ResponseEnvelope(200, {}, b"<html/>"))
        assert exc_info.value.subcode == "page_body_not_json"

    def test_error_status(self):
        with pytest.raises(HttpError) as exc_info:
            page_from_response(json_response(404, SAMPLE_ERROR_RESPONSE))
        assert exc_info.value.details["service_error_code"] == "ResourceNotFound"

    @pytest.mark.parametrize(
        "token",
        [{"skip": 50, "ranges": [{"min": "00", "max": "FF"}]}, ["shard-2", 400], 0, 17],
    )
    def test_non_string_token_forwarded(self, token):
        page = page_from_response(json_response(200, {"value": [1], "continuationToken": token}))
        assert page.continuation_token == token
        assert page.has_more

    @pytest.mark.parametrize("token", [None, ""])
    def test_null_or_empty_token_is_last_page(self, token):
        page = page_from_response(json_response(200, {"value": [1], "nextLink": token}))
        assert page.continuation_token is None
        assert not page.has_more

    def test_empty_link_falls_through_to_next_field(self):
        page = page_from_response(json_response(200, {"value": [], "nextLink": "", "continuationToken": "abc"}))
        assert page.continuation_token == "abc"
