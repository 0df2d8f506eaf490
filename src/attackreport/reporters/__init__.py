from __future__ import annotations

from attackreport.reporters.base import Reporter, format_duration, summarize, write_report
from attackreport.reporters.factory import REPORTER_NAMES, get_reporter
from attackreport.reporters.plot import PlotReporter, plot_series, plotly_js_source, report_plot
from attackreport.reporters.structured import metrics_to_dict, report_json
from attackreport.reporters.text import report_text

__all__ = [
    "REPORTER_NAMES",
    "PlotReporter",
    "Reporter",
    "format_duration",
    "get_reporter",
    "metrics_to_dict",
    "plot_series",
    "plotly_js_source",
    "report_json",
    "report_plot",
    "report_text",
    "summarize",
    "write_report",
]
