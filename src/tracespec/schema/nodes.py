"""
Schema nodes for TraceSpec.

A SchemaNode is one JSON-Schema-like fragment inferred from example
documents. Nodes are built bottom-up by the merger and never modified
afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

OBJECT = "object"
ARRAY = "array"
STRING = "string"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
UNION = "union"

KINDS = (OBJECT, ARRAY, STRING, INTEGER, NUMBER, BOOLEAN, NULL, UNION)


@dataclass(frozen=True)
class SchemaNode:
    """
    One inferred schema fragment.

    Which fields are populated depends on kind:
    - object: properties (ordered) and required (None when nothing is required)
    - array: items
    - string/integer/number: format, minimum, maximum, enum, example
    - union: alternatives, one per distinct kind, in first-seen order
    """

    kind: str
    properties: Optional[Dict[str, 'SchemaNode']] = None
    required: Optional[Tuple[str, ...]] = None
    items: Optional['SchemaNode'] = None
    format: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    enum: Optional[Tuple[Any, ...]] = None
    example: Any = None
    alternatives: Optional[Tuple['SchemaNode', ...]] = None

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"Unknown schema kind: {self.kind}")

        if self.kind == UNION:
            if not self.alternatives or len(self.alternatives) < 2:
                raise ValueError("A union needs at least two alternatives")
            body = (self.properties, self.required, self.items, self.format,
                    self.minimum, self.maximum, self.enum, self.example)
            if any(value is not None for value in body):
                raise ValueError("A union cannot carry a scalar, object or array body")
        elif self.alternatives is not None:
            raise ValueError(f"Only unions carry alternatives, not {self.kind}")

    @property
    def is_union(self) -> bool:
        return self.kind == UNION

    def fingerprint(self, values: bool = True) -> Tuple:
        """
        Structural identity of this node.

        Two nodes with equal fingerprints describe the same shape: examples
        are ignored, and union alternatives, enum values and required names
        are compared as sets. With values=False the observed ranges and enums
        are ignored too, leaving only kinds, formats and property layout.
        """
        if self.kind == UNION:
            return (UNION, tuple(sorted((alt.fingerprint(values) for alt in self.alternatives), key=repr)))

        if self.kind == OBJECT:
            props = tuple(
                (name, child.fingerprint(values))
                for name, child in sorted((self.properties or {}).items())
            )
            return (OBJECT, props, tuple(sorted(self.required or ())))

        if self.kind == ARRAY:
            return (ARRAY, self.items.fingerprint(values) if self.items else None)

        if not values:
            return (self.kind, self.format)

        enum = tuple(sorted(self.enum, key=repr)) if self.enum is not None else None
        return (self.kind, self.format, self.minimum, self.maximum, enum)

    def to_openapi(self) -> Dict[str, Any]:
        """Render as an OpenAPI 3.0 schema object (plain dict)."""
        if self.kind == UNION:
            return {'oneOf': [alt.to_openapi() for alt in self.alternatives]}

        if self.kind == NULL:
            return {'type': STRING, 'nullable': True}

        schema: Dict[str, Any] = {'type': self.kind}

        if self.kind == OBJECT:
            schema['properties'] = {
                name: child.to_openapi() for name, child in (self.properties or {}).items()
            }
            if self.required:
                schema['required'] = list(self.required)
            return schema

        if self.kind == ARRAY:
            schema['items'] = self.items.to_openapi() if self.items else {'type': STRING}
            return schema

        if self.format is not None:
            schema['format'] = self.format
        if self.minimum is not None:
            schema['minimum'] = self.minimum
        if self.maximum is not None:
            schema['maximum'] = self.maximum
        if self.enum is not None:
            schema['enum'] = list(self.enum)
        if self.example is not None:
            schema['example'] = self.example
        return schema
