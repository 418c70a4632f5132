"""
TraceSpec Traffic Analyzer

Runs the full analysis over a batch of captured exchanges: endpoint
normalization first, then schema inference for every endpoint.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .analysis import Endpoint, EndpointKey, EndpointNormalizer, NormalizationResult
from .capture import ExchangeRecord
from .config import AnalysisConfig
from .schema import EndpointSchemas, NamedSchemaTable, SchemaInferenceEngine

logger = logging.getLogger("tracespec.analyzer")


@dataclass
class AnalysisResult:
    """Endpoints, their schemas and the shared named schemas of one run."""

    normalization: NormalizationResult
    schemas: Dict[EndpointKey, EndpointSchemas]
    named_schemas: NamedSchemaTable
    analyzed_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def endpoints(self) -> Dict[EndpointKey, Endpoint]:
        return self.normalization.endpoints

    @property
    def skipped_records(self) -> int:
        return len(self.normalization.failures)

    @property
    def skipped_bodies(self) -> int:
        return sum(schemas.skipped_count for schemas in self.schemas.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary (JSON/YAML friendly)."""
        endpoints = []
        for key in sorted(self.endpoints, key=lambda k: (k.path, k.method)):
            endpoint = self.endpoints[key]
            schemas = self.schemas.get(key)

            entry: Dict[str, Any] = {
                'method': endpoint.method,
                'path': endpoint.path,
                'base_url': endpoint.base_url,
                'content_type': endpoint.content_type,
                'status_codes': sorted(endpoint.status_codes),
                'record_count': len(endpoint.records),
                'parameters': [param.to_dict() for param in endpoint.parameters],
            }
            if schemas and schemas.request and schemas.request.schema:
                entry['request_body'] = schemas.request.to_dict()
            if schemas:
                entry['responses'] = {
                    str(status): result.to_dict()
                    for status, result in schemas.responses.items()
                }
            endpoints.append(entry)

        return {
            'analyzed_at': self.analyzed_at,
            'summary': {
                'total_records': self.normalization.total,
                'processed_records': self.normalization.processed,
                'skipped_records': self.skipped_records,
                'skipped_bodies': self.skipped_bodies,
                'endpoints': len(self.endpoints),
                'named_schemas': len(self.named_schemas),
            },
            'endpoints': endpoints,
            'schemas': self.named_schemas.to_dict(),
            'failures': [failure.to_dict() for failure in self.normalization.failures],
        }


class TrafficAnalyzer:
    """
    Analyzes captured traffic into endpoints and schemas.

    Example:
        analyzer = TrafficAnalyzer(AnalysisConfig(max_workers=4))
        result = analyzer.analyze(load_records("session.json"))

        for key, schemas in result.schemas.items():
            print(key, sorted(schemas.responses))
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        normalizer: Optional[EndpointNormalizer] = None,
        engine: Optional[SchemaInferenceEngine] = None
    ):
        """
        Initialize analyzer.

        Args:
            config: Optional AnalysisConfig
            normalizer: Optional EndpointNormalizer instance (will create if None)
            engine: Optional SchemaInferenceEngine instance (will create if None)
        """
        self.config = config or AnalysisConfig()
        self.normalizer = normalizer or EndpointNormalizer(self.config)
        self.engine = engine or SchemaInferenceEngine(self.config)

    def analyze(self, records: Sequence[ExchangeRecord]) -> AnalysisResult:
        """
        Normalize records and infer schemas for every endpoint.

        Raises:
            ValueError: If records is None
            NormalizationError: If too many records failed to normalize
        """
        normalization = self.normalizer.normalize(records)
        table = NamedSchemaTable()

        endpoints = list(normalization.endpoints.values())
        if self.config.max_workers > 1 and len(endpoints) > 1:
            schemas = self._infer_concurrently(endpoints, table)
        else:
            schemas = {endpoint.key: self.engine.infer_endpoint(endpoint, table) for endpoint in endpoints}

        result = AnalysisResult(normalization=normalization, schemas=schemas, named_schemas=table)
        logger.info(
            f"Analysis complete: {len(result.endpoints)} endpoints, "
            f"{len(table)} named schemas, {result.skipped_records} skipped records, "
            f"{result.skipped_bodies} skipped bodies"
        )
        return result

    def _infer_concurrently(
        self,
        endpoints: List[Endpoint],
        table: NamedSchemaTable
    ) -> Dict[EndpointKey, EndpointSchemas]:
        schemas: Dict[EndpointKey, EndpointSchemas] = {}

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            future_to_endpoint = {
                executor.submit(self.engine.infer_endpoint, endpoint, table): endpoint
                for endpoint in endpoints
            }
            for future in as_completed(future_to_endpoint):
                endpoint = future_to_endpoint[future]
                schemas[endpoint.key] = future.result()

        # Keep normalization order regardless of completion order
        return {endpoint.key: schemas[endpoint.key] for endpoint in endpoints}
