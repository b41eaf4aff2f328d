# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from unittest.mock import Mock, patch

import pytest
import requests

from CloudServices.Management.core.http import HttpClient, compute_retry_delay, parse_retry_after


class TestParseRetryAfter:
    """Server retry hints from response headers."""

    def test_no_headers(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after({}) is None

    def test_delta_seconds(self):
        assert parse_retry_after({"Retry-After": "30"}) == 30.0

    def test_milliseconds_header_wins(self):
        headers = {"retry-after-ms": "1500", "Retry-After": "30"}
        assert parse_retry_after(headers) == 1.5

    def test_x_ms_milliseconds_header(self):
        assert parse_retry_after({"x-ms-retry-after-ms": "250"}) == 0.25

    def test_http_date(self):
        when = datetime.now(timezone.utc) + timedelta(seconds=120)
        delay = parse_retry_after({"Retry-After": format_datetime(when, usegmt=True)})
        assert 100 <= delay <= 120

    def test_http_date_in_the_past_is_zero(self):
        when = datetime.now(timezone.utc) - timedelta(seconds=120)
        assert parse_retry_after({"Retry-After": format_datetime(when, usegmt=True)}) == 0.0

    def test_garbage_ignored(self):
        assert parse_retry_after({"Retry-After": "soon"}) is None

    def test_negative_clamped(self):
        assert parse_retry_after({"Retry-After": "-5"}) == 0.0

    @pytest.mark.parametrize("value", ["inf", "-inf", "Infinity", "nan", "1e400"])
    def test_non_finite_ignored(self, value):
        assert parse_retry_after({"Retry-After": value}) is None

    def test_non_finite_milliseconds_fall_through(self):
        headers = {"retry-after-ms": "inf", "x-ms-retry-after-ms": "nan", "Retry-After": "4"}
        assert parse_retry_after(headers) == 4.0

    def test_large_finite_value_kept(self):
        assert parse_retry_after({"Retry-After": "1e12"}) == 1e12


class TestComputeRetryDelay:
    def test_exponential_without_jitter(self):
        delays = [compute_retry_delay(a, base_delay=0.5, max_backoff=60.0, jitter=False) for a in range(4)]
        assert delays == [0.5, 1.0, 2.0, 4.0]

    def test_hint_capped_at_max_backoff(self):
        assert compute_retry_delay(0, base_delay=0.5, max_backoff=10.0, jitter=False, headers={"Retry-After": "90"}) == 10.0

    def test_infinite_hint_falls_back_to_backoff(self):
        delay = compute_retry_delay(2, base_delay=0.5, max_backoff=10.0, jitter=False, headers={"Retry-After": "inf"})
        assert delay == 2.0


class TestHttpClientRetryLogic:
    """Retry behavior of HttpClient."""

    def test_default_configuration(self):
        client = HttpClient()
        assert client.max_attempts == 5
        assert client.base_delay == 0.5
        assert client.max_backoff == 60.0
        assert client.jitter is True
        assert client.retry_transient_errors is True
        assert client.transient_status_codes == {429, 502, 503, 504}

    def test_custom_configuration(self):
        client = HttpClient(retries=3, backoff=1.0, max_backoff=30.0, jitter=False, retry_transient_errors=False)
        assert client.max_attempts == 3
        assert client.base_delay == 1.0
        assert client.max_backoff == 30.0
        assert client.jitter is False
        assert client.retry_transient_errors is False

    @patch("requests.request")
    def test_successful_request_no_retry(self, mock_request):
        mock_request.return_value = Mock(status_code=200)

        response = HttpClient().request("GET", "https://management.example.com/ops/1")

        assert response.status_code == 200
        assert mock_request.call_count == 1

    @patch("requests.request")
    @patch("time.sleep")
    def test_network_error_retry(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            requests.exceptions.ConnectionError("reset"),
            Mock(status_code=200),
        ]

        response = HttpClient(jitter=False).request("GET", "https://management.example.com/ops/1")

        assert response.status_code == 200
        assert mock_request.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]

    @patch("requests.request")
    @patch("time.sleep")
    def test_transient_status_retried_with_retry_after(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            Mock(status_code=429, headers={"Retry-After": "5"}),
            Mock(status_code=200, headers={}),
        ]

        response = HttpClient(jitter=False).request("GET", "https://management.example.com/ops/1")

        assert response.status_code == 200
        mock_sleep.assert_called_once_with(5)

    @patch("requests.request")
    @patch("time.sleep")
    def test_retry_after_capped_at_max_backoff(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            Mock(status_code=503, headers={"Retry-After": "120"}),
            Mock(status_code=200, headers={}),
        ]

        HttpClient(jitter=False, max_backoff=30.0).request("GET", "https://management.example.com/ops/1")

        mock_sleep.assert_called_once_with(30.0)

    @patch("requests.request")
    @patch("time.sleep")
    def test_last_transient_response_returned(self, mock_sleep, mock_request):
        mock_request.return_value = Mock(status_code=503, headers={})

        response = HttpClient(retries=2, jitter=False).request("GET", "https://management.example.com/ops/1")

        assert response.status_code == 503
        assert mock_request.call_count == 2
        assert mock_sleep.call_count == 1

    @patch("requests.request")
    def test_non_transient_status_not_retried(self, mock_request):
        mock_request.return_value = Mock(status_code=404, headers={})

        response = HttpClient().request("GET", "https://management.example.com/ops/1")

        assert response.status_code == 404
        assert mock_request.call_count == 1

    @patch("requests.request")
    @patch("time.sleep")
    def test_transient_retry_disabled(self, mock_sleep, mock_request):
        mock_request.return_value = Mock(status_code=429, headers={})

        response = HttpClient(retry_transient_errors=False).request("GET", "https://management.example.com/ops/1")

        assert response.status_code == 429
        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    @patch("requests.request")
    @patch("time.sleep")
    def test_max_attempts_respected(self, mock_sleep, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(requests.exceptions.ConnectionError):
            HttpClient(retries=2, jitter=False).request("GET", "https://management.example.com/ops/1")

        assert mock_request.call_count == 2
        assert mock_sleep.call_count == 1

    @patch("requests.request")
    @patch("time.sleep")
    @patch("random.uniform")
    def test_jitter_applied(self, mock_uniform, mock_sleep, mock_request):
        mock_uniform.return_value = 0.1
        mock_request.side_effect = [requests.exceptions.ConnectionError("reset"), Mock(status_code=200)]

        HttpClient(jitter=True, backoff=1.0).request("GET", "https://management.example.com/ops/1")

        mock_uniform.assert_called_with(-0.25, 0.25)
        mock_sleep.assert_called_with(1.1)

    @patch("requests.request")
    def test_method_specific_timeouts(self, mock_request):
        mock_request.return_value = Mock(status_code=200)
        client = HttpClient()

        client.request("GET", "https://management.example.com/ops/1")
        assert mock_request.call_args.kwargs["timeout"] == 10

        client.request("PUT", "https://management.example.com/gw/1")
        assert mock_request.call_args.kwargs["timeout"] == 120

    @patch("requests.request")
    def test_custom_timeout_respected(self, mock_request):
        mock_request.return_value = Mock(status_code=200)

        HttpClient(timeout=30.0).request("GET", "https://management.example.com/ops/1")

        assert mock_request.call_args.kwargs["timeout"] == 30.0

    def test_session_used_when_provided(self):
        session = Mock()
        session.request.return_value = Mock(status_code=200)

        client = HttpClient(session=session)
        client.request("GET", "https://management.example.com/ops/1")
        client.close()

        session.request.assert_called_once()
        session.close.assert_called_once()
