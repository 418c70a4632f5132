"""
Path segment classification.

Decides whether a single URL path segment is a dynamic identifier (and of
which type) or a static part of the route. Only shapes that are clearly
machine-generated identifiers are parameterized; words such as "users" or
"v2" always stay static.
"""

import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_PARAMETER_NAME = "id"


@dataclass(frozen=True)
class SegmentParameter:
    """Parameter stub produced for a dynamic path segment."""

    type: str
    name: str = DEFAULT_PARAMETER_NAME


# Checked in order, first match wins
SEGMENT_PATTERNS = [
    (re.compile(r'^[0-9]+$'), 'integer'),  # 123, 456
    (re.compile(r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'), 'string'),  # UUID
    (re.compile(r'^[0-9a-fA-F]{24}$'), 'string'),  # MongoDB ObjectId
    (re.compile(r'^[0-9a-fA-F]{32}$'), 'string'),  # MD5
    (re.compile(r'^[0-9a-fA-F]{40}$'), 'string'),  # SHA-1
    (re.compile(r'^[0-9a-fA-F]{64}$'), 'string'),  # SHA-256
]


def classify_segment(segment: str) -> Optional[SegmentParameter]:
    """
    Classify one path segment.

    Args:
        segment: A path segment (no '/')

    Returns:
        SegmentParameter for identifier-shaped segments, None for static ones

    Examples:
        classify_segment("123")    -> SegmentParameter(type='integer', name='id')
        classify_segment("users")  -> None
    """
    for pattern, param_type in SEGMENT_PATTERNS:
        if pattern.fullmatch(segment):
            return SegmentParameter(type=param_type)
    return None
