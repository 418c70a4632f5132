"""
TraceSpec Common Utilities

Shared utilities and helpers used across TraceSpec modules.
"""

from .utils import (
    CaptureLoader,
    UNPARSEABLE,
    decode_body,
    safe_json_parse,
    split_media_type,
    is_json_media_type,
)
from .url_utils import URLParser

__all__ = [
    'CaptureLoader',
    'UNPARSEABLE',
    'decode_body',
    'safe_json_parse',
    'split_media_type',
    'is_json_media_type',
    'URLParser'
]
