"""
TraceSpec Common Utilities

Shared helpers for loading capture files and decoding captured bodies.
"""

import json
import logging
import math
from pathlib import Path
from typing import List, Dict, Any, Optional, Union

logger = logging.getLogger("tracespec.capture")


class _Unparseable:
    """Sentinel returned by safe_json_parse when a body is not valid JSON."""

    def __repr__(self) -> str:
        return "UNPARSEABLE"


UNPARSEABLE = _Unparseable()


def decode_body(body: Union[bytes, str, None]) -> str:
    """
    Decode a captured body into text.

    Raw bytes are decoded as UTF-8 with replacement characters so that a
    binary payload never raises; it simply fails JSON parsing later on.

    Args:
        body: Raw bytes, already decoded text, or None

    Returns:
        Body as string ("" when absent)
    """
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return body.decode('utf-8', errors='replace')


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def safe_json_parse(json_string: Union[bytes, str, None], default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    NaN, Infinity and numbers overflowing a float count as a parse failure,
    as does nesting too deep for the parser.

    Args:
        json_string: JSON string (or UTF-8 bytes) to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON value, or default if parsing fails

    Example:
        value = safe_json_parse(record.response_body, default=UNPARSEABLE)
        if value is UNPARSEABLE:
            ...
    """
    text = decode_body(json_string)
    if not text.strip():
        return default

    try:
        return json.loads(text, parse_constant=_reject_constant, parse_float=_parse_finite_float)
    except (json.JSONDecodeError, TypeError, ValueError, RecursionError):
        return default


class CaptureLoader:
    """
    Standardized loader for TraceTap capture files.

    Handles the JSON layouts written by the capture proxy:
    - Format 1: {"requests": [...]}  (raw log format)
    - Format 2: {"captures": [...]}  (alternative wrapper)
    - Format 3: [...]                (direct list format)

    Example:
        captures = CaptureLoader.load_from_file("session.json")
        for capture in captures:
            print(capture['url'])
    """

    required_fields = ('url', 'method')

    def __init__(self, file_path: str):
        """
        Initialize capture loader.

        Args:
            file_path: Path to capture JSON file
        """
        self.file_path = Path(file_path)

    def load(self) -> List[Dict[str, Any]]:
        """
        Load captures from JSON file.

        Returns:
            List of capture dictionaries

        Raises:
            FileNotFoundError: If capture file doesn't exist
            ValueError: If JSON format is invalid or unrecognized
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Capture file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {self.file_path}: {e}") from e

        if isinstance(data, dict):
            if 'requests' in data:
                return data['requests']
            elif 'captures' in data:
                return data['captures']
            raise ValueError(
                f"Unexpected JSON format in {self.file_path}. "
                f"Expected dict with 'requests' or 'captures' key, "
                f"or a list of captures. Found keys: {list(data.keys())}"
            )
        elif isinstance(data, list):
            return data

        raise ValueError(
            f"Unexpected JSON format in {self.file_path}. "
            f"Expected dict or list, got {type(data).__name__}"
        )

    @staticmethod
    def load_from_file(file_path: str) -> List[Dict[str, Any]]:
        """Convenience method to load captures in one call."""
        return CaptureLoader(file_path).load()

    def validate_capture(self, capture: Any) -> bool:
        """Check that a capture is a dict carrying the minimum required fields."""
        return isinstance(capture, dict) and all(field in capture for field in self.required_fields)

    def load_and_validate(self) -> List[Dict[str, Any]]:
        """
        Load captures and filter out invalid ones.

        Returns:
            List of valid capture dictionaries
        """
        captures = self.load()
        valid_captures = [c for c in captures if self.validate_capture(c)]

        if len(valid_captures) < len(captures):
            invalid_count = len(captures) - len(valid_captures)
            logger.warning(f"Skipped {invalid_count} invalid captures in {self.file_path}")

        return valid_captures


def split_media_type(content_type: Optional[str]) -> str:
    """Strip parameters (charset, boundary) from a Content-Type value."""
    if not content_type:
        return ""
    return content_type.split(';')[0].strip().lower()


def is_json_media_type(content_type: Optional[str]) -> bool:
    """True for application/json, text/json and +json structured suffixes."""
    media_type = split_media_type(content_type)
    return media_type.endswith('/json') or media_type.endswith('+json')
