"""
TraceSpec URL Utilities

Shared URL parsing helpers used by the endpoint normalizer.
"""

from urllib.parse import urlparse, parse_qsl, unquote
from typing import Dict, Any, List, Tuple

DEFAULT_PORTS = {
    'http': 80,
    'https': 443,
}


class URLParser:
    """Parses captured URLs into the pieces endpoint grouping needs."""

    @staticmethod
    def parse_url_components(url: str) -> Dict[str, Any]:
        """
        Parse an absolute URL into components.

        Args:
            url: Absolute URL to parse

        Returns:
            Dict with scheme, hostname, port, path, query and query pairs

        Raises:
            ValueError: If the URL is not an absolute URL with a host,
                or its port is not a valid number
        """
        if not isinstance(url, str) or not url.strip():
            raise ValueError("Empty URL")

        parsed = urlparse(url.strip())
        if not parsed.scheme or not parsed.netloc or not parsed.hostname:
            raise ValueError(f"Not an absolute URL: {url!r}")

        # Accessing .port validates it (raises ValueError when out of range)
        port = parsed.port

        return {
            'scheme': parsed.scheme.lower(),
            'hostname': parsed.hostname,
            'port': port,
            'path': parsed.path,
            'query': parsed.query,
            'query_pairs': URLParser.query_pairs(parsed.query),
        }

    @staticmethod
    def extract_base_url(url: str) -> str:
        """
        Extract scheme, host and (non-default) port.

        Examples:
            https://api.example.com:443/users -> https://api.example.com
            http://localhost:8080/api/test    -> http://localhost:8080
            http://[::1]:8080/x              -> http://[::1]:8080
        """
        parts = URLParser.parse_url_components(url)
        host = parts['hostname']
        if ':' in host:
            host = f"[{host}]"
        base = f"{parts['scheme']}://{host}"
        port = parts['port']
        if port is not None and DEFAULT_PORTS.get(parts['scheme']) != port:
            base += f":{port}"
        return base

    @staticmethod
    def path_segments(path: str) -> List[str]:
        """
        Split a URL path into its non-empty, percent-decoded segments.

        A segment whose decoded form would contain "/" (an encoded %2F) is
        kept encoded, so segments never hold a path separator.
        """
        segments = []
        for segment in path.split('/'):
            if not segment:
                continue
            decoded = unquote(segment)
            segments.append(segment if '/' in decoded else decoded)
        return segments

    @staticmethod
    def query_pairs(query: str) -> List[Tuple[str, str]]:
        """Parse a query string into ordered key/value pairs, dropping empty keys."""
        if not query:
            return []
        return [(key, value) for key, value in parse_qsl(query, keep_blank_values=True) if key]
