from __future__ import annotations

from attackreport.config import PlotConfig
from attackreport.reporters.base import Reporter
from attackreport.reporters.plot import PlotReporter, report_plot
from attackreport.reporters.structured import report_json
from attackreport.reporters.text import report_text

REPORTER_NAMES = ("text", "json", "plot")


def get_reporter(name: str, plot_config: PlotConfig | None = None) -> Reporter:
    if name == "text":
        return report_text
    if name == "json":
        return report_json
    if name == "plot":
        return PlotReporter(plot_config) if plot_config is not None else report_plot
    msg = f"Unsupported reporter: {name}"
    raise ValueError(msg)
