"""Reporting service: round-trip analysis, reports and output sinks."""

from tradeperf.services.reporting.builder import ReportBuilder, format_report_time
from tradeperf.services.reporting.formatters import display_performance_report
from tradeperf.services.reporting.interface import IOutputSink
from tradeperf.services.reporting.service import PerformanceAnalyzer
from tradeperf.services.reporting.sinks import LogSink, RelaySink, create_sink

__all__ = [
    "PerformanceAnalyzer",
    "ReportBuilder",
    "IOutputSink",
    "LogSink",
    "RelaySink",
    "create_sink",
    "display_performance_report",
    "format_report_time",
]
