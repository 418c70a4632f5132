"""
Exchange records for TraceSpec.

An ExchangeRecord is one captured HTTP request/response pair. Records are
built from TraceTap capture dicts or from mitmproxy flows and are never
modified by the analysis.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from mitmproxy import http

from ..common import decode_body

HeaderPairs = Tuple[Tuple[str, str], ...]


def _header_pairs(headers: Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None]) -> HeaderPairs:
    """Normalize a header mapping or pair list into an ordered tuple of pairs."""
    if not headers:
        return ()
    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple((str(name), str(value)) for name, value in items)


def _to_bytes(body: Union[bytes, str, None]) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    return str(body).encode('utf-8')


@dataclass(frozen=True)
class ExchangeRecord:
    """One captured HTTP request/response pair."""

    method: str
    url: str
    request_headers: HeaderPairs = ()
    request_body: Optional[bytes] = None
    status: int = 0
    response_headers: HeaderPairs = ()
    response_body: Optional[bytes] = None

    @staticmethod
    def _lookup(headers: HeaderPairs, name: str) -> List[str]:
        wanted = name.lower()
        return [value for key, value in headers if key.lower() == wanted]

    def request_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First request header value for name (case-insensitive)."""
        values = self._lookup(self.request_headers, name)
        return values[0] if values else default

    def response_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First response header value for name (case-insensitive)."""
        values = self._lookup(self.response_headers, name)
        return values[0] if values else default

    @property
    def request_text(self) -> str:
        return decode_body(self.request_body)

    @property
    def response_text(self) -> str:
        return decode_body(self.response_body)

    @classmethod
    def from_capture(cls, capture: Dict[str, Any]) -> 'ExchangeRecord':
        """
        Create a record from a TraceTap capture dict.

        Args:
            capture: Dict with method, url, req_headers, req_body, status,
                resp_headers and resp_body keys (missing keys are tolerated)

        Returns:
            ExchangeRecord
        """
        status = capture.get('status') or 0
        return cls(
            method=str(capture.get('method', 'GET')).upper(),
            url=capture.get('url', ''),
            request_headers=_header_pairs(capture.get('req_headers')),
            request_body=_to_bytes(capture.get('req_body') or None),
            status=int(status),
            response_headers=_header_pairs(capture.get('resp_headers')),
            response_body=_to_bytes(capture.get('resp_body') or None),
        )

    @classmethod
    def from_flow(cls, flow: http.HTTPFlow) -> 'ExchangeRecord':
        """
        Create a record from a mitmproxy HTTP flow.

        Bodies are taken decoded from their content-encoding when possible
        (mitmproxy's ``get_content(strict=False)``), which keeps gzip'd JSON
        parseable.
        """
        req = flow.request
        resp = flow.response

        return cls(
            method=req.method.upper(),
            url=req.pretty_url,
            request_headers=_header_pairs(req.headers.items(multi=True)),
            request_body=req.get_content(strict=False) or None,
            status=resp.status_code if resp else 0,
            response_headers=_header_pairs(resp.headers.items(multi=True)) if resp else (),
            response_body=(resp.get_content(strict=False) or None) if resp else None,
        )
