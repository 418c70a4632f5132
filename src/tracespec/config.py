"""
TraceSpec Configuration

Analysis settings loaded from YAML files and TRACESPEC_* environment
variables.
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# Observed distinct values kept per parameter
MAX_OBSERVED_VALUES = 100

# A closed value set is attached as an enum between these cardinalities
ENUM_MIN_VALUES = 2
ENUM_MAX_VALUES = 10

# Fraction of failed records above which normalization is rejected
FAILURE_THRESHOLD = 0.5

# Nesting depth beyond which a body is skipped instead of merged
MAX_BODY_DEPTH = 32
MAX_BODY_DEPTH_LIMIT = 64

_INT_FIELDS = ('max_observed_values', 'enum_min_values', 'enum_max_values', 'max_workers', 'max_body_depth')
_STR_FIELDS = ('log_level', 'output_format')


@dataclass
class AnalysisConfig:
    """Configuration for endpoint normalization and schema inference."""

    # Parameter tracking
    max_observed_values: int = MAX_OBSERVED_VALUES
    extra_headers: List[str] = field(default_factory=list)  # Tracked in addition to the allow-list

    # Schema inference
    enum_min_values: int = ENUM_MIN_VALUES
    enum_max_values: int = ENUM_MAX_VALUES
    hoist_schemas: bool = True  # Register body roots in the named schema table
    max_body_depth: int = MAX_BODY_DEPTH

    # Failure policy
    failure_threshold: float = FAILURE_THRESHOLD

    # Execution
    max_workers: int = 1  # >1 infers endpoint schemas concurrently

    # Output
    log_level: str = "info"
    output_format: str = "yaml"  # yaml, json

    def __post_init__(self):
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        for name in _STR_FIELDS:
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string, got {getattr(self, name)!r}")
        if not isinstance(self.hoist_schemas, bool):
            raise ValueError(f"hoist_schemas must be true or false, got {self.hoist_schemas!r}")
        if isinstance(self.failure_threshold, bool) or not isinstance(self.failure_threshold, (int, float)):
            raise ValueError(f"failure_threshold must be a number, got {self.failure_threshold!r}")
        if not isinstance(self.extra_headers, list) or not all(isinstance(h, str) for h in self.extra_headers):
            raise ValueError("extra_headers must be a list of header names")

        if self.max_observed_values < 1:
            raise ValueError("max_observed_values must be at least 1")
        if not 1 <= self.enum_min_values <= self.enum_max_values:
            raise ValueError("enum_min_values must be between 1 and enum_max_values")
        if not 0.0 <= self.failure_threshold <= 1.0:
            raise ValueError("failure_threshold must be between 0.0 and 1.0")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if not 1 <= self.max_body_depth <= MAX_BODY_DEPTH_LIMIT:
            raise ValueError(f"max_body_depth must be between 1 and {MAX_BODY_DEPTH_LIMIT}")
        if self.output_format not in ('yaml', 'json'):
            raise ValueError(f"Unsupported output format: {self.output_format}")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'AnalysisConfig':
        """Create config from a dictionary, ignoring unknown keys."""
        data = data or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config settings must be a mapping, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'AnalysisConfig':
        """
        Load config from a YAML file (top level or under an 'analysis' key).

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not valid YAML or holds invalid settings
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        return cls.from_dict(data.get('analysis', data))

    def with_env(self, environ: Optional[Dict[str, str]] = None) -> 'AnalysisConfig':
        """
        Return a copy overridden by TRACESPEC_* environment variables.

        Supported: TRACESPEC_LOG_LEVEL, TRACESPEC_OUTPUT_FORMAT,
        TRACESPEC_MAX_WORKERS, TRACESPEC_HOIST_SCHEMAS, TRACESPEC_EXTRA_HEADERS
        (comma-separated).
        """
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}

        if env.get('TRACESPEC_LOG_LEVEL'):
            overrides['log_level'] = env['TRACESPEC_LOG_LEVEL'].lower()
        if env.get('TRACESPEC_OUTPUT_FORMAT'):
            overrides['output_format'] = env['TRACESPEC_OUTPUT_FORMAT'].lower()
        if env.get('TRACESPEC_MAX_WORKERS'):
            overrides['max_workers'] = int(env['TRACESPEC_MAX_WORKERS'])
        if env.get('TRACESPEC_HOIST_SCHEMAS'):
            overrides['hoist_schemas'] = env['TRACESPEC_HOIST_SCHEMAS'].lower() == 'true'
        if env.get('TRACESPEC_EXTRA_HEADERS'):
            overrides['extra_headers'] = [
                h.strip() for h in env['TRACESPEC_EXTRA_HEADERS'].split(',') if h.strip()
            ]

        return replace(self, **overrides) if overrides else self
