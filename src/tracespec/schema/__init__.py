"""
TraceSpec Schema Module

Structural schema inference from captured JSON and form bodies.

This module provides:
- SchemaNode, the inferred schema tree
- ShapeMerger, the recursive JSON shape merger
- SchemaInferenceEngine, per-endpoint request/response schema inference
- NamedSchemaTable, shared named schemas for hoisting
"""

from .nodes import SchemaNode
from .formats import detect_format
from .merger import ShapeMerger, json_depth, json_kind, merge_values
from .engine import (
    BodyRole,
    EndpointSchemas,
    InferenceResult,
    NamedSchemaTable,
    SchemaInferenceEngine,
    infer_schemas,
    schema_base_name,
)

__all__ = [
    # Nodes
    'SchemaNode',

    # Merging
    'detect_format',
    'ShapeMerger',
    'json_depth',
    'json_kind',
    'merge_values',

    # Engine
    'BodyRole',
    'EndpointSchemas',
    'InferenceResult',
    'NamedSchemaTable',
    'SchemaInferenceEngine',
    'infer_schemas',
    'schema_base_name',
]
