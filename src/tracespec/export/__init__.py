"""
TraceSpec Export Module

Writes analysis reports to disk.
"""

from .report import ReportExporter, SUPPORTED_FORMATS

__all__ = ['ReportExporter', 'SUPPORTED_FORMATS']
