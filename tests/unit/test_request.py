"""
Unit tests for HTTP request parsing.
"""

import pytest

from fileserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    Verb,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.verb is Verb.GET
        assert request.target == "/data"
        assert request.path == "data"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.body == b""

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that header names are lowercased."""
        request = parse_request(sample_get_request)

        assert request.user_agent == "pytest"
        assert request.headers["host"] == "localhost:8080"
        assert request.get_header("Accept") == "*/*"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Test that the body is kept as opaque bytes."""
        request = parse_request(sample_post_request)

        assert request.verb is Verb.POST
        assert request.body == b'{"key1":"value1"}'
        assert request.content_length == 17

    def test_body_truncated_to_content_length(self):
        """Bytes past Content-Length are not part of the body."""
        raw = b"PUT /a HTTP/1.1\r\nContent-Length: 3\r\n\r\nabcdef"
        request = parse_request(raw)

        assert request.body == b"abc"

    def test_binary_body(self):
        """Non-UTF-8 bodies survive parsing untouched."""
        body = bytes(range(256))
        raw = b"POST /bin HTTP/1.1\r\nContent-Length: 256\r\n\r\n" + body
        request = parse_request(raw)

        assert request.body == body

    def test_path_taken_verbatim(self):
        """Only the leading slash is stripped; nothing is decoded or normalised."""
        raw = b"GET /dir/../a%20b.txt?x=1 HTTP/1.1\r\n\r\n"
        request = parse_request(raw)

        assert request.target == "/dir/../a%20b.txt?x=1"
        assert request.path == "dir/../a%20b.txt?x=1"

    def test_only_one_leading_slash_stripped(self):
        request = HTTPRequest(method="GET", target="//abs")
        assert request.path == "/abs"

    @pytest.mark.parametrize("method", ["PATCH", "HEAD", "OPTIONS", "BREW", "get"])
    def test_unknown_methods_parse_as_other(self, method: str):
        """Unknown method tokens parse fine and map to Verb.OTHER."""
        raw = f"{method} /data HTTP/1.1\r\nHost: test\r\n\r\n".encode()
        request = parse_request(raw)

        assert request.method == method
        assert request.verb is Verb.OTHER

    def test_http_10(self):
        request = parse_request(b"DELETE /x HTTP/1.0\r\n\r\n")
        assert request.version == "HTTP/1.0"
        assert request.verb is Verb.DELETE

    def test_parse_invalid_request_line(self):
        """Test handling of malformed request line."""
        with pytest.raises(HTTPParseError):
            parse_request(b"GET\r\nHost: test\r\n\r\n")

    def test_parse_unsupported_version(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET /data HTTP/2.0\r\n\r\n")

    def test_missing_header_terminator(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET /data HTTP/1.1\r\nHost: test\r\n")

    def test_empty_request(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"")

    def test_malformed_header(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET /data HTTP/1.1\r\nno colon here\r\n\r\n")

    def test_incomplete_body(self):
        raw = b"POST /data HTTP/1.1\r\nContent-Length: 10\r\n\r\nshort"
        with pytest.raises(HTTPParseError):
            parse_request(raw)

    @pytest.mark.parametrize("value", [b"abc", b"-1"])
    def test_invalid_content_length(self, value: bytes):
        raw = b"POST /data HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"
        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_request_too_large(self):
        raw = b"POST /data HTTP/1.1\r\nContent-Length: 100\r\n\r\n" + b"x" * 100
        with pytest.raises(HTTPParseError):
            parse_request(raw, max_size=64)

    def test_repeated_and_folded_headers(self):
        raw = (
            b"GET /data HTTP/1.1\r\n"
            b"X-Tag: a\r\n"
            b"X-Tag: b\r\n"
            b"X-Long: first\r\n"
            b"  second\r\n"
            b"\r\n"
        )
        request = parse_request(raw)

        assert request.headers["x-tag"] == "a, b"
        assert request.headers["x-long"] == "first second"


class TestVerb:
    """Tests for Verb mapping."""

    @pytest.mark.parametrize("method,verb", [
        ("GET", Verb.GET),
        ("PUT", Verb.PUT),
        ("POST", Verb.POST),
        ("DELETE", Verb.DELETE),
        ("PATCH", Verb.OTHER),
        ("delete", Verb.OTHER),
    ])
    def test_from_method(self, method: str, verb: Verb):
        assert Verb.from_method(method) is verb
