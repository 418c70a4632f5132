"""
Endpoint normalization for TraceSpec.

Groups captured exchanges into logical endpoints keyed by HTTP method and a
canonical path template, e.g.::

    GET /users/123  ┐
    GET /users/456  ┘ -> GET /users/{id}

and merges the path, query and header parameters observed across every
record of an endpoint.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

from ..capture import ExchangeRecord
from ..common import URLParser, split_media_type
from ..config import AnalysisConfig
from .classifier import DEFAULT_PARAMETER_NAME, classify_segment
from .parameters import (
    HEADER,
    PATH,
    QUERY,
    ParameterDescriptor,
    header_description,
    infer_value_type,
    is_required_header,
    is_tracked_header,
    sanitize_header_value,
)

logger = logging.getLogger("tracespec.normalizer")

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class NormalizationError(ValueError):
    """Raised when too many records of a batch fail to normalize."""

    def __init__(self, failed: int, total: int, last_error: str = ""):
        self.failed = failed
        self.total = total
        self.last_error = last_error
        message = f"Too many records failed to normalize ({failed} out of {total})"
        if last_error:
            message += f". Last error: {last_error}"
        super().__init__(message)


class EndpointKey(NamedTuple):
    """Identity of an endpoint: HTTP method plus path template."""

    method: str
    path: str

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


@dataclass
class Endpoint:
    """A logical API operation and every record observed for it."""

    method: str
    path: str
    base_url: str
    path_parameters: Dict[str, ParameterDescriptor] = field(default_factory=dict)
    query_parameters: Dict[str, ParameterDescriptor] = field(default_factory=dict)
    header_parameters: Dict[str, ParameterDescriptor] = field(default_factory=dict)
    status_codes: Set[int] = field(default_factory=set)
    records: List[ExchangeRecord] = field(default_factory=list)
    content_type: Optional[str] = None

    @property
    def key(self) -> EndpointKey:
        return EndpointKey(self.method, self.path)

    @property
    def parameters(self) -> List[ParameterDescriptor]:
        """All parameters: path first, then query, then headers."""
        return (
            list(self.path_parameters.values())
            + list(self.query_parameters.values())
            + list(self.header_parameters.values())
        )

    def records_by_status(self) -> Dict[int, List[ExchangeRecord]]:
        """Group member records by response status code (sorted by code)."""
        grouped: Dict[int, List[ExchangeRecord]] = {}
        for record in self.records:
            grouped.setdefault(record.status, []).append(record)
        return dict(sorted(grouped.items()))


@dataclass
class RecordFailure:
    """A record that could not be normalized."""

    index: int
    url: str
    reason: str

    def to_dict(self) -> Dict[str, object]:
        return {'index': self.index, 'url': self.url, 'reason': self.reason}


@dataclass
class NormalizationResult:
    """Endpoints found in a batch, plus the records that were skipped."""

    endpoints: Dict[EndpointKey, Endpoint] = field(default_factory=dict)
    failures: List[RecordFailure] = field(default_factory=list)
    processed: int = 0

    @property
    def total(self) -> int:
        return self.processed + len(self.failures)


def build_path_template(path: str) -> Tuple[str, List[Tuple[str, str, str]]]:
    """
    Build the canonical template for a URL path.

    Identifier segments are replaced by {name} placeholders. A single
    parameter keeps its default name ("id"); when a path holds several, they
    are numbered by position (param1, param2, ...) to keep names unique.

    Args:
        path: URL path, e.g. "/users/123/posts/9"

    Returns:
        (template, [(name, type, segment value), ...])

    Examples:
        "/users/123"          -> "/users/{id}"
        "/users/123/posts/9"  -> "/users/{param1}/posts/{param2}"
        "/"                   -> "/"
    """
    segments = URLParser.path_segments(path)
    classified = [(segment, classify_segment(segment)) for segment in segments]
    param_count = sum(1 for _, param in classified if param is not None)

    parts = []
    parameters = []
    ordinal = 0
    for segment, param in classified:
        if param is None:
            parts.append(segment)
            continue

        ordinal += 1
        name = (param.name or DEFAULT_PARAMETER_NAME) if param_count == 1 else f"param{ordinal}"
        parts.append(f"{{{name}}}")
        parameters.append((name, param.type, segment))

    return "/" + "/".join(parts), parameters


def detect_content_type(record: ExchangeRecord) -> str:
    """
    Determine the request content type of a record.

    Prefers the Content-Type header (without parameters), then sniffs the
    request body, then falls back to application/json.
    """
    media_type = split_media_type(record.request_header('Content-Type'))
    if media_type:
        return media_type

    body = record.request_text.lstrip()
    if body:
        if body.startswith('{') or body.startswith('['):
            return JSON_CONTENT_TYPE
        if '=' in body and '&' in body:
            return FORM_CONTENT_TYPE

    return JSON_CONTENT_TYPE


class EndpointNormalizer:
    """
    Groups exchange records into endpoints.

    Example:
        normalizer = EndpointNormalizer()
        result = normalizer.normalize(records)

        for key, endpoint in result.endpoints.items():
            print(key, len(endpoint.records))
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize normalizer.

        Args:
            config: Optional AnalysisConfig (observed-value cap, extra headers,
                failure threshold)
        """
        self.config = config or AnalysisConfig()

    def normalize(self, records: Sequence[ExchangeRecord]) -> NormalizationResult:
        """
        Normalize a batch of records into endpoints.

        Records that fail (malformed URL, unexpected data) are skipped and
        reported in ``failures``. If the failed share exceeds the configured
        threshold the whole batch is rejected.

        Raises:
            ValueError: If records is None
            NormalizationError: If too many records failed
        """
        if records is None:
            raise ValueError("records must be a sequence, got None")

        endpoints: Dict[EndpointKey, Endpoint] = {}
        failures: List[RecordFailure] = []
        processed = 0

        for index, record in enumerate(records):
            try:
                self._add_record(endpoints, record)
                processed += 1
            except (ValueError, TypeError, AttributeError) as e:
                url = getattr(record, 'url', '') or ''
                failures.append(RecordFailure(index=index, url=str(url), reason=str(e)))
                logger.warning(f"Skipping record {index} ({url}): {e}")

        total = processed + len(failures)
        if total and len(failures) > total * self.config.failure_threshold:
            raise NormalizationError(
                failed=len(failures),
                total=total,
                last_error=failures[-1].reason
            )

        logger.info(
            f"Normalization complete: {processed} records processed, "
            f"{len(failures)} skipped, {len(endpoints)} unique endpoints"
        )
        return NormalizationResult(endpoints=endpoints, failures=failures, processed=processed)

    def _add_record(self, endpoints: Dict[EndpointKey, Endpoint], record: ExchangeRecord) -> None:
        """
        Merge one record into the endpoint map.

        Everything that can raise on a malformed record runs before the map
        is touched, so a failing record leaves no trace in any endpoint.
        """
        if record is None:
            raise ValueError("Record is None")
        if not record.method:
            raise ValueError("Record has no HTTP method")

        parts = URLParser.parse_url_components(record.url)
        template, path_params = build_path_template(parts['path'])
        key = EndpointKey(record.method.upper(), template)
        base_url = URLParser.extract_base_url(record.url)
        headers = self._tracked_headers(record)
        content_type = detect_content_type(record)
        status = int(record.status)

        endpoint = endpoints.get(key)
        if endpoint is None:
            endpoint = Endpoint(method=key.method, path=template, base_url=base_url)
            endpoints[key] = endpoint
            logger.debug(f"New endpoint: {key}")

        endpoint.records.append(record)
        endpoint.status_codes.add(status)

        self._merge_path_parameters(endpoint, path_params)
        self._merge_query_parameters(endpoint, parts['query_pairs'])
        self._merge_header_parameters(endpoint, headers)

        if endpoint.content_type is None:
            endpoint.content_type = content_type

    def _merge_path_parameters(self, endpoint: Endpoint, path_params: List[Tuple[str, str, str]]) -> None:
        for name, param_type, value in path_params:
            param = endpoint.path_parameters.get(name)
            if param is None:
                param = ParameterDescriptor(
                    name=name,
                    location=PATH,
                    type=param_type,
                    required=True,
                    example=value,
                    max_values=self.config.max_observed_values,
                )
                endpoint.path_parameters[name] = param
            param.observe(value)

    def _merge_query_parameters(self, endpoint: Endpoint, pairs: List[Tuple[str, str]]) -> None:
        # First observation's type wins; later values only extend the observed set
        for name, value in pairs:
            param = endpoint.query_parameters.get(name)
            if param is None:
                param = ParameterDescriptor(
                    name=name,
                    location=QUERY,
                    type=infer_value_type(value),
                    required=False,
                    example=value,
                    max_values=self.config.max_observed_values,
                )
                endpoint.query_parameters[name] = param
            param.observe(value)

    def _tracked_headers(self, record: ExchangeRecord) -> List[Tuple[str, Optional[str]]]:
        """Tracked request headers of a record with sanitized values."""
        tracked = []
        for name, value in record.request_headers:
            if is_tracked_header(name, self.config.extra_headers):
                tracked.append((name, sanitize_header_value(value)))
        return tracked

    def _merge_header_parameters(self, endpoint: Endpoint, headers: List[Tuple[str, Optional[str]]]) -> None:
        for name, sanitized in headers:
            key = name.lower()
            param = endpoint.header_parameters.get(key)
            if param is None:
                param = ParameterDescriptor(
                    name=name,
                    location=HEADER,
                    type="string",
                    required=is_required_header(name),
                    example=sanitized,
                    description=header_description(name),
                    max_values=self.config.max_observed_values,
                )
                endpoint.header_parameters[key] = param
            param.observe(sanitized)


def normalize_endpoints(
    records: Sequence[ExchangeRecord],
    config: Optional[AnalysisConfig] = None
) -> NormalizationResult:
    """Normalize records into endpoints with a default (or given) config."""
    return EndpointNormalizer(config).normalize(records)
