from __future__ import annotations

from typing import Sequence

from attackreport.errors import ReportError
from attackreport.metrics import Metrics
from attackreport.reporters.base import format_duration, summarize
from attackreport.results.models import Result


def _rows(m: Metrics) -> list[tuple[str, str, str]]:
    lat = m.latencies
    return [
        ("Requests", "[total]", f"{m.requests}"),
        (
            "Duration",
            "[total, attack, wait]",
            ", ".join(format_duration(d) for d in (m.total, m.duration, m.wait)),
        ),
        (
            "Latencies",
            "[mean, 50, 95, 99, max]",
            ", ".join(format_duration(d) for d in (lat.mean, lat.p50, lat.p95, lat.p99, lat.max)),
        ),
        ("Bytes In", "[total, mean]", f"{m.bytes_in.total}, {m.bytes_in.mean:.2f}"),
        ("Bytes Out", "[total, mean]", f"{m.bytes_out.total}, {m.bytes_out.mean:.2f}"),
        ("Success", "[ratio]", f"{m.success * 100:.2f}%"),
        (
            "Status Codes",
            "[code:count]",
            "  ".join(f"{code}:{count}" for code, count in m.status_codes.items()),
        ),
    ]


def report_text(results: Sequence[Result]) -> bytes:
    """Metrics as an aligned plain-text table followed by the error set."""
    metrics = summarize(results)
    rows = _rows(metrics)
    label_width = max(len(label) for label, _, _ in rows) + 2
    fields_width = max(len(fields) for _, fields, _ in rows) + 2

    lines = [
        f"{label:<{label_width}}{fields:<{fields_width}}{value}".rstrip()
        for label, fields, value in rows
    ]
    lines.append("Error Set:")
    lines.extend(metrics.errors)
    try:
        return ("\n".join(lines) + "\n").encode("utf-8")
    except UnicodeEncodeError as exc:
        msg = f"failed encoding text report: {exc}"
        raise ReportError(msg) from exc
