"""
Tests for parameter descriptors.

Tests value type inference, header filtering, credential sanitization and
the bounded observed-value set.
"""

import pytest

from tracespec.analysis import ParameterDescriptor, infer_value_type, sanitize_header_value
from tracespec.analysis.parameters import (
    header_description,
    is_required_header,
    is_tracked_header,
)


class TestInferValueType:
    """Test suite for infer_value_type()."""

    @pytest.mark.parametrize("value,expected", [
        ("42", "integer"),
        ("-7", "integer"),
        ("3.14", "number"),
        ("1e10", "number"),
        (".5", "number"),
        ("true", "boolean"),
        ("FALSE", "boolean"),
        ("hello", "string"),
        ("", "string"),
        (None, "string"),
    ])
    def test_literal_types(self, value, expected):
        """Test integer, number, boolean and string detection."""
        assert infer_value_type(value) == expected

    @pytest.mark.parametrize("value", ["nan", "inf", "1_000", "0x1F"])
    def test_python_only_numbers_are_strings(self, value):
        """Test that values float() would accept but query strings don't mean as numbers stay strings."""
        assert infer_value_type(value) == "string"


class TestParameterDescriptor:
    """Test suite for ParameterDescriptor."""

    def test_observe_distinct_values(self):
        """Test that repeated values are stored once, in first-seen order."""
        param = ParameterDescriptor(name="page", location="query")

        for value in ["1", "2", "1", "3", "2"]:
            param.observe(value)

        assert param.observed_values == ["1", "2", "3"]

    def test_observe_cap(self):
        """Test that collection stops once the cap is reached."""
        param = ParameterDescriptor(name="id", location="path", max_values=3)

        for i in range(10):
            param.observe(str(i))

        assert param.observed_values == ["0", "1", "2"]
        assert param.capped is True

    def test_default_cap_is_100(self):
        """Test the default observed-value cap."""
        param = ParameterDescriptor(name="id", location="path")

        for i in range(250):
            param.observe(str(i))

        assert len(param.observed_values) == 100

    def test_to_dict(self):
        """Test dictionary conversion."""
        param = ParameterDescriptor(
            name="Authorization",
            location="header",
            required=True,
            example="Bearer <token>",
            description="Authentication credentials for the API",
        )
        param.observe("Bearer <token>")

        data = param.to_dict()

        assert data == {
            'name': "Authorization",
            'in': "header",
            'type': "string",
            'required': True,
            'example': "Bearer <token>",
            'observed_values': ["Bearer <token>"],
            'description': "Authentication credentials for the API",
        }

    def test_to_dict_without_description(self):
        """Test that an empty description is omitted."""
        data = ParameterDescriptor(name="q", location="query").to_dict()

        assert 'description' not in data


class TestHeaderFiltering:
    """Test suite for tracked and required headers."""

    @pytest.mark.parametrize("name", [
        "Authorization", "authorization", "X-API-Key", "Accept",
        "Content-Type", "User-Agent", "X-Requested-With",
        "X-Forwarded-For", "X-Real-IP", "X-Tenant-Id", "x-custom",
    ])
    def test_tracked_headers(self, name):
        """Test allow-listed and X- prefixed headers."""
        assert is_tracked_header(name) is True

    @pytest.mark.parametrize("name", ["Cookie", "Host", "Content-Length", "Accept-Encoding"])
    def test_untracked_headers(self, name):
        """Test that other headers are dropped."""
        assert is_tracked_header(name) is False

    def test_extra_headers(self):
        """Test configured extra headers."""
        assert is_tracked_header("If-None-Match", ["if-none-match"]) is True
        assert is_tracked_header("If-None-Match") is False

    def test_required_headers(self):
        """Test that only auth and content-type headers are required."""
        assert is_required_header("authorization")
        assert is_required_header("X-API-KEY")
        assert is_required_header("Content-Type")
        assert not is_required_header("Accept")
        assert not is_required_header("X-Tenant-Id")

    def test_header_description(self):
        """Test known and custom header descriptions."""
        assert header_description("Accept") == "Media type(s) that the client can accept"
        assert header_description("X-Tenant-Id") == "Custom header: X-Tenant-Id"


class TestSanitizeHeaderValue:
    """Test suite for sanitize_header_value()."""

    def test_bearer_token(self):
        """Test bearer tokens are masked."""
        assert sanitize_header_value("Bearer eyJhbGciOiJIUzI1NiJ9.payload.sig") == "Bearer <token>"
        assert sanitize_header_value("bearer abc") == "Bearer <token>"

    def test_basic_credentials(self):
        """Test basic credentials are masked."""
        assert sanitize_header_value("Basic dXNlcjpwYXNz") == "Basic <credentials>"

    def test_base64_like_value(self):
        """Test long base64-looking values are masked."""
        assert sanitize_header_value("c2VjcmV0LWFwaS1rZXktdmFsdWU=") == "<encoded_value>"

    def test_short_or_plain_values_kept(self):
        """Test ordinary values pass through."""
        assert sanitize_header_value("application/json") == "application/json"
        assert sanitize_header_value("abc123") == "abc123"
        assert sanitize_header_value("") == ""
        assert sanitize_header_value(None) is None
