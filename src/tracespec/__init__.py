"""
TraceSpec - API model inference from captured HTTP traffic

Groups captured exchanges into endpoints with typed parameters and infers
structural schemas for their request and response bodies.
"""

from .analysis import EndpointNormalizer, NormalizationError, normalize_endpoints
from .analyzer import AnalysisResult, TrafficAnalyzer
from .capture import ExchangeRecord, load_records
from .config import AnalysisConfig
from .schema import NamedSchemaTable, SchemaInferenceEngine, infer_schemas

__version__ = '1.0.0'

__all__ = [
    'AnalysisConfig',
    'AnalysisResult',
    'EndpointNormalizer',
    'ExchangeRecord',
    'NamedSchemaTable',
    'NormalizationError',
    'SchemaInferenceEngine',
    'TrafficAnalyzer',
    'infer_schemas',
    'load_records',
    'normalize_endpoints',
]
