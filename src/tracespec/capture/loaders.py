"""
Record loading for TraceSpec.

Reads captured traffic from disk and converts it into ExchangeRecords:
- TraceTap JSON capture logs (via CaptureLoader)
- mitmproxy flow dumps (mitmdump -w / mitmproxy "save flows")
"""

import logging
from pathlib import Path
from typing import Iterator, List

from mitmproxy import http, io
from mitmproxy.exceptions import FlowReadException

from ..common import CaptureLoader
from .records import ExchangeRecord

logger = logging.getLogger("tracespec.capture")

FLOW_SUFFIXES = ('.flow', '.flows', '.mitm', '.dump')


def read_flow_file(file_path: str) -> Iterator[http.HTTPFlow]:
    """
    Stream HTTP flows from a mitmproxy dump file.

    Non-HTTP flows (TCP, UDP, DNS) are skipped.

    Raises:
        FileNotFoundError: If the dump doesn't exist
        ValueError: If the file is not a readable flow dump
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Flow file not found: {path}")

    with open(path, 'rb') as f:
        reader = io.FlowReader(f)
        try:
            for flow in reader.stream():
                if isinstance(flow, http.HTTPFlow):
                    yield flow
        except FlowReadException as e:
            raise ValueError(f"Invalid flow file {path}: {e}") from e


def load_records(file_path: str) -> List[ExchangeRecord]:
    """
    Load ExchangeRecords from a capture log or a mitmproxy dump.

    The format is chosen by extension; anything that isn't a known flow
    dump suffix is read as a TraceTap JSON capture log.
    """
    path = Path(file_path)

    if path.suffix.lower() in FLOW_SUFFIXES:
        records = [ExchangeRecord.from_flow(flow) for flow in read_flow_file(str(path))]
        logger.info(f"Loaded {len(records)} flows from {path}")
        return records

    captures = CaptureLoader(str(path)).load_and_validate()
    records = [ExchangeRecord.from_capture(capture) for capture in captures]
    logger.info(f"Loaded {len(records)} captures from {path}")
    return records
