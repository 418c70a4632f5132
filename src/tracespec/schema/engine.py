"""
Schema inference for TraceSpec endpoints.

Turns the request and response bodies captured for an endpoint into
schemas:
- one request-body schema (JSON or form-encoded)
- one response-body schema per status code

Body roots can be hoisted into a NamedSchemaTable owned by the caller, so
structurally identical bodies seen on different endpoints share one name.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl

from ..analysis.normalizer import FORM_CONTENT_TYPE, Endpoint
from ..analysis.parameters import infer_value_type
from ..capture import ExchangeRecord
from ..common import UNPARSEABLE, decode_body, is_json_media_type, safe_json_parse
from ..config import AnalysisConfig
from .merger import ShapeMerger, json_depth
from .nodes import BOOLEAN, INTEGER, NUMBER, OBJECT, SchemaNode

logger = logging.getLogger("tracespec.schema")

Body = Union[bytes, str, None]

REQUEST = "request"
RESPONSE = "response"


@dataclass(frozen=True)
class BodyRole:
    """Which body of an endpoint a schema describes."""

    kind: str
    status: Optional[int] = None

    @classmethod
    def request(cls) -> 'BodyRole':
        return cls(kind=REQUEST)

    @classmethod
    def response(cls, status: int) -> 'BodyRole':
        return cls(kind=RESPONSE, status=status)

    @property
    def suffix(self) -> str:
        if self.kind == REQUEST:
            return "Request"
        return f"Response{self.status}"

    def __str__(self) -> str:
        return REQUEST if self.kind == REQUEST else f"{RESPONSE} {self.status}"


def schema_base_name(endpoint: Any, role: BodyRole) -> str:
    """
    Build a schema name from an endpoint's method, path and the body role.

    Examples:
        GET /users/{id}, response 200 -> "GetUsersIdResponse200"
        POST /api/v1/orders, request  -> "PostApiV1OrdersRequest"
        GET /, response 204           -> "GetRootResponse204"
    """
    words = [endpoint.method.lower()]
    for segment in endpoint.path.split('/'):
        words.extend(word for word in re.split(r'[^A-Za-z0-9]+', segment) if word)
    if len(words) == 1:
        words.append('root')
    return ''.join(word[:1].upper() + word[1:] for word in words) + role.suffix


class NamedSchemaTable:
    """
    Name -> SchemaNode table shared across one analysis run.

    Registering a node whose shape is already in the table returns the
    existing name; otherwise the node is stored under the base name, or the
    base name plus an incrementing suffix when that name is taken.
    Thread-safe: each generated name is inserted at most once.
    """

    def __init__(self):
        self._schemas: Dict[str, SchemaNode] = {}
        self._by_shape: Dict[Tuple, str] = {}
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def register(self, base_name: str, node: SchemaNode) -> str:
        """Register a node and return the name it is known by."""
        shape = node.fingerprint(values=False)
        with self._lock:
            existing = self._by_shape.get(shape)
            if existing is not None:
                return existing

            name = self._unique_name(base_name)
            self._schemas[name] = node
            self._by_shape[shape] = name
            return name

    def _unique_name(self, base_name: str) -> str:
        if base_name not in self._counters and base_name not in self._schemas:
            self._counters[base_name] = 0
            return base_name

        counter = self._counters.get(base_name, 0)
        while True:
            counter += 1
            candidate = f"{base_name}{counter}"
            if candidate not in self._schemas:
                self._counters[base_name] = counter
                return candidate

    def get(self, name: str) -> Optional[SchemaNode]:
        with self._lock:
            return self._schemas.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return list(self._schemas)

    def items(self) -> List[Tuple[str, SchemaNode]]:
        with self._lock:
            return list(self._schemas.items())

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._schemas

    def __len__(self) -> int:
        with self._lock:
            return len(self._schemas)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Render every named schema as an OpenAPI schema object."""
        return {name: node.to_openapi() for name, node in self.items()}


@dataclass
class InferenceResult:
    """Schema inferred for one endpoint body role."""

    role: BodyRole
    schema: Optional[SchemaNode]
    named_schemas: NamedSchemaTable
    schema_name: Optional[str] = None
    sample_count: int = 0
    skipped_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'schema': self.schema.to_openapi() if self.schema else None,
            'schema_name': self.schema_name,
            'sample_count': self.sample_count,
            'skipped_bodies': self.skipped_count,
        }


@dataclass
class EndpointSchemas:
    """Request schema and per-status response schemas of one endpoint."""

    endpoint: Endpoint
    request: Optional[InferenceResult] = None
    responses: Dict[int, InferenceResult] = field(default_factory=dict)

    @property
    def skipped_count(self) -> int:
        skipped = sum(result.skipped_count for result in self.responses.values())
        if self.request:
            skipped += self.request.skipped_count
        return skipped


def is_json_response(record: ExchangeRecord) -> bool:
    """True when the response declares a JSON Content-Type."""
    return is_json_media_type(record.response_header('Content-Type'))


class SchemaInferenceEngine:
    """
    Infers request/response body schemas for normalized endpoints.

    Example:
        engine = SchemaInferenceEngine()
        table = NamedSchemaTable()
        result = engine.infer_schemas(endpoint, BodyRole.response(200), bodies, table)

        if result.schema:
            print(result.schema.to_openapi())
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize engine.

        Args:
            config: Optional AnalysisConfig (enum thresholds, hoisting)
        """
        self.config = config or AnalysisConfig()
        self.merger = ShapeMerger.from_config(self.config)

    def infer_schemas(
        self,
        endpoint: Any,
        role: BodyRole,
        bodies: Sequence[Body],
        named_schemas: Optional[NamedSchemaTable] = None
    ) -> InferenceResult:
        """
        Merge the JSON bodies of one endpoint role into a single schema.

        Empty bodies are ignored. Bodies that are not valid JSON, or that nest
        deeper than max_body_depth, are dropped with a warning and counted in
        skipped_count. When nothing usable is
        left the result carries no schema.

        Args:
            endpoint: Endpoint (anything with method and path) the bodies belong to
            role: BodyRole.request() or BodyRole.response(status)
            bodies: Raw bodies (bytes or text)
            named_schemas: Table to hoist the root schema into (a new one if None)

        Returns:
            InferenceResult
        """
        table = named_schemas if named_schemas is not None else NamedSchemaTable()

        examples = []
        skipped = 0
        for index, body in enumerate(bodies):
            text = decode_body(body)
            if not text.strip():
                continue

            value = safe_json_parse(text, default=UNPARSEABLE)
            if value is UNPARSEABLE:
                skipped += 1
                logger.warning(
                    f"Skipping invalid JSON body #{index} for "
                    f"{endpoint.method} {endpoint.path} ({role})"
                )
                continue
            if json_depth(value) > self.config.max_body_depth:
                skipped += 1
                logger.warning(
                    f"Skipping body #{index} for {endpoint.method} {endpoint.path} ({role}): "
                    f"nested deeper than {self.config.max_body_depth} levels"
                )
                continue
            examples.append(value)

        if not examples:
            logger.debug(f"No usable examples for {endpoint.method} {endpoint.path} ({role})")
            return InferenceResult(role=role, schema=None, named_schemas=table, skipped_count=skipped)

        schema = self.merger.merge(examples)
        return self._result(endpoint, role, schema, table, len(examples), skipped)

    def infer_form_schema(
        self,
        endpoint: Any,
        bodies: Sequence[Body],
        named_schemas: Optional[NamedSchemaTable] = None
    ) -> InferenceResult:
        """
        Build a request schema from application/x-www-form-urlencoded bodies.

        Each field's type comes from its first non-empty value; fields sent
        in every body are required.
        """
        table = named_schemas if named_schemas is not None else NamedSchemaTable()
        role = BodyRole.request()

        forms = [parse_qsl(text, keep_blank_values=True)
                 for text in (decode_body(body) for body in bodies) if text.strip()]
        if not forms:
            return InferenceResult(role=role, schema=None, named_schemas=table)

        values: Dict[str, List[str]] = {}
        presence: Dict[str, int] = {}
        for pairs in forms:
            for name in dict.fromkeys(key for key, _ in pairs):
                presence[name] = presence.get(name, 0) + 1
            for name, value in pairs:
                values.setdefault(name, []).append(value)

        properties = {name: self._form_field_node(field_values) for name, field_values in values.items()}
        required = tuple(name for name in properties if presence[name] == len(forms))

        schema = SchemaNode(kind=OBJECT, properties=properties, required=required or None)
        return self._result(endpoint, role, schema, table, len(forms), 0)

    def _form_field_node(self, values: List[str]) -> SchemaNode:
        non_empty = [value for value in values if value]
        field_type = infer_value_type(non_empty[0] if non_empty else "")

        if field_type == INTEGER:
            numbers = [int(v) for v in non_empty if infer_value_type(v) == INTEGER]
            return self.merger.merge(numbers)
        if field_type == NUMBER:
            numbers = [float(v) for v in non_empty if infer_value_type(v) in (INTEGER, NUMBER)]
            return self.merger.merge(numbers)
        if field_type == BOOLEAN:
            return SchemaNode(kind=BOOLEAN)
        return self.merger.merge(values)

    def _result(
        self,
        endpoint: Any,
        role: BodyRole,
        schema: SchemaNode,
        table: NamedSchemaTable,
        sample_count: int,
        skipped: int
    ) -> InferenceResult:
        name = None
        if self.config.hoist_schemas and schema.kind == OBJECT:
            name = table.register(schema_base_name(endpoint, role), schema)

        logger.debug(
            f"Inferred {schema.kind} schema for {endpoint.method} {endpoint.path} "
            f"({role}) from {sample_count} examples"
        )
        return InferenceResult(
            role=role,
            schema=schema,
            named_schemas=table,
            schema_name=name,
            sample_count=sample_count,
            skipped_count=skipped
        )

    def infer_endpoint(
        self,
        endpoint: Endpoint,
        named_schemas: Optional[NamedSchemaTable] = None
    ) -> EndpointSchemas:
        """
        Infer the request schema and every response schema of an endpoint.

        Request bodies follow the endpoint's content type (JSON or form);
        other media types get no request schema. Response bodies are used
        when their Content-Type is JSON.
        """
        table = named_schemas if named_schemas is not None else NamedSchemaTable()
        result = EndpointSchemas(endpoint=endpoint)

        request_bodies = [record.request_body for record in endpoint.records if record.request_body]
        if request_bodies:
            if endpoint.content_type == FORM_CONTENT_TYPE:
                result.request = self.infer_form_schema(endpoint, request_bodies, table)
            elif is_json_media_type(endpoint.content_type):
                result.request = self.infer_schemas(endpoint, BodyRole.request(), request_bodies, table)
            else:
                logger.debug(f"No request schema for {endpoint.content_type} on {endpoint.key}")

        for status, records in endpoint.records_by_status().items():
            bodies = [
                record.response_body for record in records
                if record.response_body and is_json_response(record)
            ]
            result.responses[status] = self.infer_schemas(endpoint, BodyRole.response(status), bodies, table)

        return result


def infer_schemas(
    endpoint: Any,
    role: BodyRole,
    bodies: Sequence[Body],
    named_schemas: Optional[NamedSchemaTable] = None,
    config: Optional[AnalysisConfig] = None
) -> InferenceResult:
    """Infer one role's schema with a default (or given) config."""
    return SchemaInferenceEngine(config).infer_schemas(endpoint, role, bodies, named_schemas)
