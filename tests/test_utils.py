"""
Tests for common utilities.

Tests CaptureLoader, body decoding, JSON parsing, media types and URL
parsing without touching the network.
"""

import json

import pytest

from tracespec.common import (
    CaptureLoader,
    UNPARSEABLE,
    URLParser,
    decode_body,
    is_json_media_type,
    safe_json_parse,
    split_media_type,
)


@pytest.fixture
def sample_captures():
    return [
        {"method": "GET", "url": "https://api.example.com/users", "status": 200},
        {"method": "POST", "url": "https://api.example.com/users", "status": 201},
    ]


class TestCaptureLoader:
    """Test suite for CaptureLoader."""

    @pytest.mark.parametrize("wrapper", ["requests", "captures", None])
    def test_supported_layouts(self, tmp_path, sample_captures, wrapper):
        """Test wrapped and bare list layouts."""
        data = {wrapper: sample_captures} if wrapper else sample_captures
        path = tmp_path / "session.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        assert CaptureLoader.load_from_file(str(path)) == sample_captures

    def test_missing_file(self, tmp_path):
        """Test missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            CaptureLoader(str(tmp_path / "missing.json")).load()

    def test_invalid_json(self, tmp_path):
        """Test malformed JSON raises ValueError."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid JSON"):
            CaptureLoader(str(path)).load()

    def test_unexpected_dict(self, tmp_path):
        """Test dicts without a known key are rejected."""
        path = tmp_path / "other.json"
        path.write_text('{"items": []}', encoding="utf-8")

        with pytest.raises(ValueError, match="Found keys"):
            CaptureLoader(str(path)).load()

    def test_unexpected_scalar(self, tmp_path):
        """Test scalar documents are rejected."""
        path = tmp_path / "scalar.json"
        path.write_text('42', encoding="utf-8")

        with pytest.raises(ValueError, match="got int"):
            CaptureLoader(str(path)).load()

    def test_load_and_validate(self, tmp_path, sample_captures, caplog):
        """Test invalid captures are filtered with a warning."""
        path = tmp_path / "session.json"
        path.write_text(json.dumps(sample_captures + [{"url": "x"}, "junk"]), encoding="utf-8")

        valid = CaptureLoader(str(path)).load_and_validate()

        assert valid == sample_captures
        assert "Skipped 2 invalid captures" in caplog.text


class TestBodyHelpers:
    """Test suite for decode_body() and safe_json_parse()."""

    def test_decode_body(self):
        """Test bytes, text and missing bodies."""
        assert decode_body(None) == ""
        assert decode_body("text") == "text"
        assert decode_body("héllo".encode("utf-8")) == "héllo"

    def test_decode_invalid_utf8(self):
        """Test invalid UTF-8 is replaced instead of raising."""
        assert "�" in decode_body(b"\xff\xfe{")

    def test_safe_json_parse(self):
        """Test parsing valid, blank and invalid input."""
        assert safe_json_parse('{"a": 1}') == {"a": 1}
        assert safe_json_parse(b'[1, 2]') == [1, 2]
        assert safe_json_parse("null", default=UNPARSEABLE) is None
        assert safe_json_parse("", default="empty") == "empty"
        assert safe_json_parse("{bad", default=UNPARSEABLE) is UNPARSEABLE
        assert safe_json_parse(b"\xff\xfe", default=UNPARSEABLE) is UNPARSEABLE

    @pytest.mark.parametrize("text", [
        '{"a": NaN}',
        '[Infinity]',
        '{"a": -Infinity}',
        '{"a": 1e999}',
    ])
    def test_safe_json_parse_rejects_non_finite(self, text):
        """Test NaN, Infinity and overflowing numbers are not valid JSON."""
        assert safe_json_parse(text, default=UNPARSEABLE) is UNPARSEABLE

    def test_safe_json_parse_too_deep(self):
        """Test nesting past the interpreter limit falls back to the default."""
        text = "[" * 100000 + "]" * 100000

        assert safe_json_parse(text, default=UNPARSEABLE) is UNPARSEABLE


class TestMediaTypes:
    """Test suite for Content-Type helpers."""

    def test_split_media_type(self):
        """Test parameters are stripped and case is folded."""
        assert split_media_type("Application/JSON; charset=utf-8") == "application/json"
        assert split_media_type(None) == ""

    @pytest.mark.parametrize("value,expected", [
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("application/problem+json", True),
        ("text/json", True),
        ("text/html", False),
        ("application/jsonp", False),
        (None, False),
    ])
    def test_is_json_media_type(self, value, expected):
        """Test JSON media type detection."""
        assert is_json_media_type(value) is expected


class TestURLParser:
    """Test suite for URLParser."""

    def test_parse_url_components(self):
        """Test component extraction."""
        parts = URLParser.parse_url_components("HTTPS://api.example.com:8443/users/1?a=1&b=&=x")

        assert parts['scheme'] == "https"
        assert parts['hostname'] == "api.example.com"
        assert parts['port'] == 8443
        assert parts['path'] == "/users/1"
        assert parts['query_pairs'] == [("a", "1"), ("b", "")]

    @pytest.mark.parametrize("url", ["", "   ", "/relative", "example.com/path", "https://:80/x"])
    def test_invalid_urls(self, url):
        """Test non-absolute URLs are rejected."""
        with pytest.raises(ValueError):
            URLParser.parse_url_components(url)

    def test_extract_base_url(self):
        """Test default ports are dropped and others kept."""
        assert URLParser.extract_base_url("https://api.example.com:443/users") == "https://api.example.com"
        assert URLParser.extract_base_url("http://api.example.com:80/") == "http://api.example.com"
        assert URLParser.extract_base_url("http://localhost:8080/api/test") == "http://localhost:8080"

    def test_extract_base_url_ipv6(self):
        """Test IPv6 hosts keep their brackets."""
        assert URLParser.extract_base_url("http://[::1]:8080/x") == "http://[::1]:8080"
        assert URLParser.extract_base_url("https://[2001:db8::1]/users") == "https://[2001:db8::1]"

    def test_path_segments(self):
        """Test empty segments are dropped and escapes decoded."""
        assert URLParser.path_segments("/a//b%20c/") == ["a", "b c"]

    def test_path_segments_keep_encoded_slash(self):
        """Test %2F stays encoded so a segment never splits."""
        assert URLParser.path_segments("/files/a%2Fb/x%20y") == ["files", "a%2Fb", "x y"]
