"""Tests for http_request module."""

from cloudlog_stream.http_request import format_http_request


class TestFormatHttpRequest:
    def test_method_and_url(self):
        result = format_http_request({"method": "GET", "url": "/x"})
        assert result["requestMethod"] == "GET"
        assert result["requestUrl"] == "/x"
        assert result["remoteIp"] == ""

    def test_sub_record_fields_pass_through(self):
        result = format_http_request({"method": "GET", "url": "/x"})
        assert result == {
            "requestMethod": "GET",
            "requestUrl": "/x",
            "remoteIp": "",
            "method": "GET",
            "url": "/x",
        }

    def test_empty_sub_record(self):
        assert format_http_request({}) == {
            "requestMethod": "",
            "requestUrl": "",
            "remoteIp": "",
        }

    def test_none_values_count_as_absent(self):
        result = format_http_request({"method": None, "url": None, "remoteAddress": None})
        assert result["requestMethod"] == ""
        assert result["remoteIp"] == ""
        assert result["method"] is None

    def test_remote_address(self):
        result = format_http_request({"remoteAddress": "10.0.0.1", "remotePort": 5555})
        assert result["remoteIp"] == "10.0.0.1"
        assert result["remotePort"] == 5555

    def test_cloud_schema_fields_win(self):
        result = format_http_request({
            "method": "GET",
            "requestMethod": "POST",
            "status": 201,
            "userAgent": "curl/8.0",
        })
        assert result["requestMethod"] == "POST"
        assert result["status"] == 201
        assert result["userAgent"] == "curl/8.0"

    def test_headers_unchanged(self):
        headers = {"host": "example.com", "x-request-id": "abc"}
        result = format_http_request({"headers": headers})
        assert result["headers"] == headers

    def test_input_not_mutated(self):
        request = {"method": "GET"}
        format_http_request(request)
        assert request == {"method": "GET"}
