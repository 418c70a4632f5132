#!/usr/bin/env python3
"""
TraceSpec - API model inference from captured HTTP traffic

Reads a TraceTap capture log or a mitmproxy flow dump, groups requests into
endpoints and infers request/response body schemas.

Usage:
    tracespec session.json --output api-model.yaml
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .analysis import NormalizationError
from .analyzer import TrafficAnalyzer
from .capture import load_records
from .config import AnalysisConfig
from .export import ReportExporter, SUPPORTED_FORMATS


# ============================================================================
# COMMAND-LINE INTERFACE
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Namespace object with parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog='tracespec',
        description="TraceSpec - infer endpoints and body schemas from captured HTTP traffic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s session.json
  %(prog)s session.json --output api-model.yaml
  %(prog)s session.json --output api-model.json --format json

  # mitmproxy dumps (mitmdump -w traffic.flow)
  %(prog)s traffic.flow --output api-model.yaml

  # Settings from a YAML file, schema inference on 4 threads
  %(prog)s session.json --config tracespec.yaml --workers 4

Environment variables:
  TRACESPEC_LOG_LEVEL, TRACESPEC_OUTPUT_FORMAT, TRACESPEC_MAX_WORKERS,
  TRACESPEC_HOIST_SCHEMAS, TRACESPEC_EXTRA_HEADERS
        """
    )

    parser.add_argument(
        'input',
        metavar='INPUT',
        help='TraceTap capture log (.json) or mitmproxy flow dump (.flow)'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default='',
        metavar='PATH',
        help='Write the report to this path (default: print to stdout)'
    )

    parser.add_argument(
        '--format',
        choices=SUPPORTED_FORMATS,
        default=None,
        dest='output_format',
        help='Report format (default: from config, else yaml)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='',
        metavar='PATH',
        help='YAML file with analysis settings'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        metavar='N',
        help='Infer endpoint schemas on N threads'
    )

    parser.add_argument(
        '--no-hoist',
        action='store_true',
        dest='no_hoist',
        help='Do not collect body schemas into named schemas'
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        '--verbose',
        action='store_true',
        help='Log per-record and per-body details'
    )
    verbosity.add_argument(
        '--quiet',
        action='store_true',
        help='Only log errors'
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AnalysisConfig:
    """Layer config sources: YAML file, then environment, then CLI flags."""
    config = AnalysisConfig.from_yaml(args.config) if args.config else AnalysisConfig()
    config = config.with_env()

    overrides = {}
    if args.output_format:
        overrides['output_format'] = args.output_format
    if args.workers is not None:
        overrides['max_workers'] = args.workers
    if args.no_hoist:
        overrides['hoist_schemas'] = False
    if args.verbose:
        overrides['log_level'] = 'debug'
    elif args.quiet:
        overrides['log_level'] = 'error'

    return replace(config, **overrides) if overrides else config


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for TraceSpec.

    Flow:
    1. Parse command-line arguments and build the config
    2. Load exchange records from the input file
    3. Normalize endpoints and infer schemas
    4. Write (or print) the report

    Returns:
        Process exit code
    """
    args = parse_args(argv)

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr, flush=True)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        records = load_records(args.input)
    except (OSError, ValueError) as e:
        print(f"❌ Could not load {args.input}: {e}", file=sys.stderr, flush=True)
        return 1

    if not records:
        print(f"⚠️  No requests found in {args.input}", file=sys.stderr, flush=True)
        return 1

    try:
        result = TrafficAnalyzer(config).analyze(records)
    except NormalizationError as e:
        print(f"❌ Analysis failed: {e}", file=sys.stderr, flush=True)
        return 1

    if args.output:
        try:
            ReportExporter.export(result, args.output, config.output_format)
        except OSError:
            return 1
    else:
        print(ReportExporter.render(result, config.output_format))

    if result.skipped_records or result.skipped_bodies:
        print(f"⚠️  Skipped {result.skipped_records} records and "
              f"{result.skipped_bodies} bodies that could not be analyzed",
              file=sys.stderr, flush=True)

    return 0


if __name__ == '__main__':
    sys.exit(main())
