from __future__ import annotations

from attackreport.errors import (
    AttackReportError,
    ChannelClosed,
    DecodeError,
    ReportError,
    StreamAbortedError,
)
from attackreport.metrics import Metrics, compute_metrics
from attackreport.reporters import get_reporter, report_json, report_plot, report_text, write_report
from attackreport.results import Result, collect, gather_results, sort_results

__version__ = "0.1.0"

__all__ = [
    "AttackReportError",
    "ChannelClosed",
    "DecodeError",
    "Metrics",
    "ReportError",
    "Result",
    "StreamAbortedError",
    "collect",
    "compute_metrics",
    "gather_results",
    "get_reporter",
    "report_json",
    "report_plot",
    "report_text",
    "sort_results",
    "write_report",
]
