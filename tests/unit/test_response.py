"""
Unit tests for HTTP response building.
"""

import json

from fileserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    accepted,
    format_http_date,
    internal_error,
    not_found,
    not_implemented,
)
from fileserver.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        response = HTTPResponse(status=HTTPStatus.ACCEPTED)
        assert response.status_line == "HTTP/1.1 202 Accepted"

    def test_to_bytes(self):
        """Test response serialization."""
        response = HTTPResponse(status=HTTPStatus.ACCEPTED, body=b"hello")
        data = response.to_bytes()

        head, body = data.split(b"\r\n\r\n", 1)
        assert head.startswith(b"HTTP/1.1 202 Accepted\r\n")
        assert b"Content-Length: 5" in head
        assert b"Connection: close" in head
        assert b"Server: PyFileServer/1.0" in head
        assert b"Date: " in head
        assert body == b"hello"

    def test_to_bytes_custom_server_name(self):
        data = HTTPResponse().to_bytes(server_name="Test/0.1")
        assert b"Server: Test/0.1\r\n" in data

    def test_explicit_headers_win(self):
        response = HTTPResponse().set_header("Connection", "keep-alive")
        assert b"Connection: keep-alive" in response.to_bytes()

    def test_empty_body(self):
        data = HTTPResponse().to_bytes()
        assert data.endswith(b"\r\n\r\n")
        assert b"Content-Length: 0" in data


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_builder_chain(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .header("X-Custom", "value")
            .text("missing")
            .build())

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.headers["X-Custom"] == "value"
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert response.body == b"missing"

    def test_builder_json(self):
        response = ResponseBuilder().json({"error": "boom"}).build()
        assert json.loads(response.body) == {"error": "boom"}
        assert response.headers["Content-Type"].startswith("application/json")

    def test_builder_body_str(self):
        response = ResponseBuilder().body("héllo").build()
        assert response.body == "héllo".encode("utf-8")


class TestHelpers:
    """One helper per status the server sends."""

    def test_accepted_without_body(self):
        response = accepted()
        assert response.status == HTTPStatus.ACCEPTED
        assert response.body == b""
        assert "Content-Type" not in response.headers

    def test_accepted_with_body(self):
        response = accepted(b"\x00\x01file")
        assert response.body == b"\x00\x01file"
        assert response.headers["Content-Type"] == "application/octet-stream"

    def test_not_found(self):
        response = not_found("File not found: data")
        assert response.status == 404
        assert json.loads(response.body) == {"error": "File not found: data"}

    def test_not_implemented(self):
        response = not_implemented()
        assert response.status == 501
        assert response.body == b"Unidentified request-method"

    def test_internal_error(self):
        response = internal_error()
        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.status_line == "HTTP/1.1 500 Internal Server Error"


class TestStatus:

    def test_vocabulary(self):
        assert {int(s) for s in HTTPStatus} == {202, 404, 500, 501}

    def test_phrases(self):
        assert HTTPStatus.NOT_IMPLEMENTED.phrase == "Not Implemented"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"

    def test_success_and_error(self):
        assert HTTPStatus.ACCEPTED.is_success
        assert not HTTPStatus.ACCEPTED.is_error
        assert HTTPStatus.NOT_FOUND.is_error


def test_format_http_date():
    from datetime import datetime, timezone

    dt = datetime(2026, 10, 19, 12, 0, 5, tzinfo=timezone.utc)
    assert format_http_date(dt) == "Mon, 19 Oct 2026 12:00:05 GMT"
