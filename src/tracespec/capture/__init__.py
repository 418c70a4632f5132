"""
TraceSpec Capture Module

Captured HTTP exchanges and the loaders that produce them.
"""

from .records import ExchangeRecord
from .loaders import load_records, read_flow_file

__all__ = [
    'ExchangeRecord',
    'load_records',
    'read_flow_file',
]
