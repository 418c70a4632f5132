"""
Report export for TraceSpec.

Writes an analysis result to disk as JSON or YAML.
"""

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from ..analyzer import AnalysisResult

SUPPORTED_FORMATS = ('json', 'yaml')


class ReportExporter:
    """
    Exports an AnalysisResult to a JSON or YAML report.
    """

    @staticmethod
    def render(result: AnalysisResult, fmt: str = 'yaml') -> str:
        """
        Render the report as text.

        Args:
            result: Analysis to render
            fmt: "json" or "yaml"

        Raises:
            ValueError: If the format is not supported
        """
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported report format: {fmt} (expected one of {', '.join(SUPPORTED_FORMATS)})")

        data: Dict[str, Any] = result.to_dict()
        if fmt == 'json':
            return json.dumps(data, indent=2, ensure_ascii=False)
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)

    @staticmethod
    def export(result: AnalysisResult, output_path: str, fmt: str = 'yaml') -> None:
        """
        Write the analysis report to a file.

        Args:
            result: Analysis to export
            output_path: Where to save the report
            fmt: "json" or "yaml"
        """
        content = ReportExporter.render(result, fmt)

        output_file = Path(output_path)
        try:
            output_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"❌ Error creating directory {output_file.parent}: {e}", flush=True)
            raise

        try:
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            print(f"❌ Error writing to {output_path}: {e}", flush=True)
            raise

        print(f"✓ Exported {len(result.endpoints)} endpoints, "
              f"{len(result.named_schemas)} schemas → {output_path}", flush=True)
