"""
TraceSpec Analysis Module

Endpoint normalization: path classification, endpoint grouping and
parameter merging.
"""

from .classifier import SegmentParameter, classify_segment
from .parameters import ParameterDescriptor, infer_value_type, sanitize_header_value
from .normalizer import (
    Endpoint,
    EndpointKey,
    EndpointNormalizer,
    NormalizationError,
    NormalizationResult,
    RecordFailure,
    build_path_template,
    detect_content_type,
    normalize_endpoints,
)

__all__ = [
    # Classifier
    'SegmentParameter',
    'classify_segment',

    # Parameters
    'ParameterDescriptor',
    'infer_value_type',
    'sanitize_header_value',

    # Normalizer
    'Endpoint',
    'EndpointKey',
    'EndpointNormalizer',
    'NormalizationError',
    'NormalizationResult',
    'RecordFailure',
    'build_path_template',
    'detect_content_type',
    'normalize_endpoints',
]
