from __future__ import annotations

import html
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from string import Template
from typing import Callable, Optional, Sequence

import plotly.graph_objects as go
from plotly.offline import get_plotlyjs

from attackreport.config import PlotConfig
from attackreport.errors import ReportError
from attackreport.results.models import Result, SuccessLatency, latency_sample

SeriesPoint = tuple[float, Optional[float], Optional[float]]

_MS = timedelta(milliseconds=1)

_PAGE = Template(
    """<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>$title</title>
  <script type="text/javascript">
$js_src
  </script>
</head>
<body>
$chart
<table style="font-family: Courier; margin: 0 auto">
  <tr>
    <th>Timestamp</th>
    <th>Return Code</th>
    <th>Method</th>
    <th>URL</th>
    <th>In (bytes)</th>
    <th>Out (bytes)</th>
  </tr>
$rows
</table>
</body>
</html>
"""
)

_ROW = Template(
    """  <tr bgcolor="$color">
    <td align="center" valign="middle">$timestamp</td>
    <td align="center" valign="middle">$code</td>
    <td align="center" valign="middle">$method</td>
    <td align="left" valign="middle"><a href="$url">$url</a></td>
    <td align="center" valign="middle">$bytes_in</td>
    <td align="center" valign="middle">$bytes_out</td>
  </tr>"""
)

_EMPTY_ROW = '  <tr><td colspan="6" align="center"><b>No results found</b></td></tr>'


@lru_cache(maxsize=1)
def plotly_js_source() -> bytes:
    return get_plotlyjs().encode("utf-8")


def plot_series(results: Sequence[Result]) -> list[SeriesPoint]:
    """``(elapsed_seconds, err_ms, ok_ms)`` per record, one latency slot left as None."""
    if not results:
        return []
    origin = results[0].timestamp
    points: list[SeriesPoint] = []
    for r in results:
        elapsed = (r.timestamp - origin).total_seconds()
        sample = latency_sample(r)
        ms = sample.latency / _MS
        if isinstance(sample, SuccessLatency):
            points.append((elapsed, None, ms))
        else:
            points.append((elapsed, ms, None))
    return points


def _figure(series: list[SeriesPoint], config: PlotConfig) -> go.Figure:
    xs = [p[0] for p in series]
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=xs,
            y=[p[1] for p in series],
            name="ERR",
            mode="lines+markers",
            line={"color": config.err_color, "width": 1.3},
            connectgaps=False,
        )
    )
    fig.add_trace(
        go.Scatter(
            x=xs,
            y=[p[2] for p in series],
            name="OK",
            mode="lines+markers",
            line={"color": config.ok_color, "width": 1.3},
            connectgaps=False,
        )
    )
    fig.update_layout(
        title=config.title,
        xaxis_title="Seconds elapsed",
        yaxis_title="Latency (ms)",
        height=config.height_px,
        xaxis={"rangeslider": {"visible": True, "thickness": 0.05}},
    )
    if config.log_scale:
        fig.update_yaxes(type="log")
    return fig


def _row(r: Result, config: PlotConfig) -> str:
    method = r.request.method if r.request else ""
    url = r.request.url if r.request else ""
    return _ROW.substitute(
        color=config.ok_color if r.success else config.err_color,
        timestamp=html.escape(r.timestamp.isoformat()),
        code=r.code,
        method=html.escape(method),
        url=html.escape(url, quote=True),
        bytes_in=r.bytes_in,
        bytes_out=r.bytes_out,
    )


@dataclass(frozen=True, slots=True)
class PlotReporter:
    """Self-contained HTML page with a latency plot and a results table.

    ``js_source`` supplies the charting library embedded verbatim in the page.
    """

    config: PlotConfig = field(default_factory=PlotConfig)
    js_source: Callable[[], bytes] = plotly_js_source

    def __call__(self, results: Sequence[Result]) -> bytes:
        try:
            chart = _figure(plot_series(results), self.config).to_html(
                full_html=False,
                include_plotlyjs=False,
                div_id="latencies",
                config={"displaylogo": False, "toImageButtonOptions": {"filename": "plot"}},
            )
            rows = "\n".join(_row(r, self.config) for r in results) or _EMPTY_ROW
            page = _PAGE.substitute(
                title=html.escape(self.config.title),
                js_src=self.js_source().decode("utf-8"),
                chart=chart,
                rows=rows,
            )
            return page.encode("utf-8")
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            msg = f"failed rendering plot report: {exc}"
            raise ReportError(msg) from exc


report_plot = PlotReporter()
