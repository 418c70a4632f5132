"""
Parameter descriptors for normalized endpoints.

Tracks the path, query and header parameters observed for an endpoint,
infers their types from literal values and sanitizes credentials out of
header examples.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..config import MAX_OBSERVED_VALUES

PATH = "path"
QUERY = "query"
HEADER = "header"

# Headers documented as parameters (any X-* header is tracked as well)
TRACKED_HEADERS = [
    'Authorization',
    'X-API-Key',
    'Accept',
    'Content-Type',
    'User-Agent',
    'X-Requested-With',
    'X-Forwarded-For',
    'X-Real-IP',
]

REQUIRED_HEADERS = {'authorization', 'x-api-key', 'content-type'}

HEADER_DESCRIPTIONS = {
    'authorization': 'Authentication credentials for the API',
    'x-api-key': 'API key for authentication',
    'accept': 'Media type(s) that the client can accept',
    'content-type': 'Media type of the request body',
    'user-agent': 'User agent string of the client',
    'x-requested-with': 'Used to identify AJAX requests',
    'x-forwarded-for': 'Originating IP address of the client',
    'x-real-ip': 'Real IP address of the client',
}

_INTEGER_RE = re.compile(r'^[+-]?[0-9]+$')
_DECIMAL_RE = re.compile(r'^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$')
_BASE64_LIKE_RE = re.compile(r'^[A-Za-z0-9+/]{20,}={0,2}$')


@dataclass
class ParameterDescriptor:
    """
    One parameter of an endpoint, merged across all of its records.

    The observed value set is bounded by max_values; once full it stops
    growing but the descriptor itself is kept.
    """

    name: str
    location: str
    type: str = "string"
    required: bool = False
    example: Optional[str] = None
    description: Optional[str] = None
    max_values: int = MAX_OBSERVED_VALUES
    observed_values: List[str] = field(default_factory=list)

    def observe(self, value: str) -> None:
        """Add a value to the observed set (no-op when capped or already seen)."""
        if len(self.observed_values) >= self.max_values:
            return
        if value not in self.observed_values:
            self.observed_values.append(value)

    @property
    def capped(self) -> bool:
        return len(self.observed_values) >= self.max_values

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary."""
        data = {
            'name': self.name,
            'in': self.location,
            'type': self.type,
            'required': self.required,
            'example': self.example,
            'observed_values': list(self.observed_values),
        }
        if self.description:
            data['description'] = self.description
        return data


def infer_value_type(value: Optional[str]) -> str:
    """
    Infer a parameter type from one literal value.

    Tries integer, then decimal number, then boolean; anything else
    (including empty values) is a string.
    """
    if not value:
        return "string"

    text = value.strip()
    if _INTEGER_RE.fullmatch(text):
        return "integer"

    if _DECIMAL_RE.fullmatch(text):
        return "number"

    if text.lower() in ('true', 'false'):
        return "boolean"

    return "string"


def is_tracked_header(name: str, extra_headers: Iterable[str] = ()) -> bool:
    """True for allow-listed headers, any X-* header and configured extras."""
    lowered = name.lower()
    if lowered.startswith('x-'):
        return True
    tracked = {h.lower() for h in TRACKED_HEADERS}
    tracked.update(h.lower() for h in extra_headers)
    return lowered in tracked


def is_required_header(name: str) -> bool:
    return name.lower() in REQUIRED_HEADERS


def header_description(name: str) -> str:
    return HEADER_DESCRIPTIONS.get(name.lower(), f"Custom header: {name}")


def sanitize_header_value(value: Optional[str]) -> Optional[str]:
    """
    Replace credentials in a header value with placeholders.

    Examples:
        "Bearer eyJhbGciOi..."  -> "Bearer <token>"
        "Basic dXNlcjpwYXNz"    -> "Basic <credentials>"
        "c2VjcmV0LWFwaS1rZXktdmFsdWU=" -> "<encoded_value>"
    """
    if not value:
        return value

    lowered = value.lower()
    if lowered.startswith('bearer '):
        return "Bearer <token>"
    if lowered.startswith('basic '):
        return "Basic <credentials>"
    if _BASE64_LIKE_RE.fullmatch(value):
        return "<encoded_value>"

    return value
