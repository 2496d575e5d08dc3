"""
Unit tests for HTTP request parsing.
"""

import pytest

from gamegate.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
)


def parse(raw: bytes) -> HTTPRequest:
    return RequestParser().parse(raw)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        raw = (
            b"GET /api/player/inventory?name=Steve&key=abc HTTP/1.1\r\n"
            b"Host: localhost:8080\r\n"
            b"User-Agent: pytest\r\n"
            b"\r\n"
        )
        request = RequestParser().parse(raw, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/api/player/inventory"
        assert request.query_string == "name=Steve&key=abc"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.user_agent == "pytest"

    def test_method_is_upper_cased(self):
        request = parse(b"get / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"

    def test_any_method_token_accepted(self):
        # The route decides (405), not the parser
        request = parse(b"PURGE /static HTTP/1.1\r\n\r\n")

        assert request.method == "PURGE"

    def test_path_is_decoded_query_is_raw(self):
        request = parse(b"GET /static/my%20file.css?key=a%2Bb HTTP/1.1\r\n\r\n")

        assert request.path == "/static/my file.css"
        assert request.query_string == "key=a%2Bb"
        assert request.get_raw_query("key") == "a%2Bb"
        assert request.get_query("key") == "a+b"

    def test_split_on_first_question_mark(self):
        request = parse(b"GET /x?command=say+what?&a=1 HTTP/1.1\r\n\r\n")

        assert request.path == "/x"
        assert request.query_string == "command=say+what?&a=1"

    def test_fragment_dropped(self):
        request = parse(b"GET /index.html?a=1#top HTTP/1.1\r\n\r\n")

        assert request.path == "/index.html"
        assert request.query_string == "a=1"

    def test_dot_dot_not_rejected(self):
        request = parse(b"GET /static/../../etc/passwd HTTP/1.1\r\n\r\n")

        assert request.path == "/static/../../etc/passwd"

    def test_encoded_dot_dot_decoded(self):
        request = parse(b"GET /static/%2e%2e/%2e%2e/etc/passwd HTTP/1.1\r\n\r\n")

        assert request.path == "/static/../../etc/passwd"

    def test_parse_invalid_request_line(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET\r\nHost: test\r\n\r\n")

        assert exc_info.value.status_code == 400

    def test_relative_target_rejected(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET index.html HTTP/1.1\r\n\r\n")

        assert exc_info.value.status_code == 400

    def test_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / HTTP/2.0\r\n\r\n")

        assert exc_info.value.status_code == 505

    def test_incomplete_headers(self):
        with pytest.raises(HTTPParseError, match="no header terminator"):
            parse(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_missing_headers(self):
        request = parse(b"GET / HTTP/1.1\r\n\r\n")

        assert request.path == "/"
        assert len(request.headers) == 0

    def test_parse_request_too_large(self):
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_content_length_handling(self):
        raw = (
            b"POST /server/console/execute?command=list HTTP/1.1\r\n"
            b"Content-Length: 9\r\n"
            b"\r\n"
            b"test bodyEXTRA"
        )
        request = parse(raw)

        assert request.body == b"test body"

    def test_invalid_content_length(self):
        with pytest.raises(HTTPParseError, match="Content-Length"):
            parse(b"POST / HTTP/1.1\r\nContent-Length: lots\r\n\r\n")

    def test_short_body(self):
        with pytest.raises(HTTPParseError, match="Incomplete body"):
            parse(b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")

    def test_case_insensitive_headers(self):
        request = parse(b"GET / HTTP/1.1\r\nAUTHORIZATION: Bearer abc\r\n\r\n")

        assert request.headers == {"authorization": "Bearer abc"}
        assert request.get_header("Authorization") == "Bearer abc"

    def test_repeated_headers_folded(self):
        request = parse(b"GET / HTTP/1.1\r\nAccept: a\r\nAccept: b\r\n\r\n")

        assert request.get_header("accept") == "a, b"
        assert request.header_values("Accept") == ["a", "b"]

    def test_continuation_lines(self):
        request = parse(b"GET / HTTP/1.1\r\nX-Long: one\r\n  two\r\n\r\n")

        assert request.get_header("x-long") == "one two"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_header_values_without_parser(self):
        request = HTTPRequest(method="GET", path="/", headers={"authorization": "Bearer abc"})

        assert request.header_values("Authorization") == ["Bearer abc"]
        assert request.header_values("X-Missing") == []

    def test_query_helpers(self):
        request = HTTPRequest(method="GET", path="/", query_string="name=Steve%20Jr&name=Alex")

        assert request.get_query("name") == "Steve Jr"
        assert request.get_raw_query("name") == "Steve%20Jr"
        assert request.get_query("missing") is None
