from __future__ import annotations

import json
from typing import Any, Sequence

from attackreport.errors import ReportError
from attackreport.metrics import Metrics
from attackreport.reporters.base import summarize
from attackreport.results.models import Result, to_nanoseconds


def metrics_to_dict(m: Metrics) -> dict[str, Any]:
    """Fixed-key JSON view of ``Metrics``; durations are integer nanoseconds."""
    lat = m.latencies
    return {
        "requests": m.requests,
        "duration_total": to_nanoseconds(m.total),
        "duration_attack": to_nanoseconds(m.duration),
        "duration_wait": to_nanoseconds(m.wait),
        "latencies": {
            "mean": to_nanoseconds(lat.mean),
            "50th": to_nanoseconds(lat.p50),
            "95th": to_nanoseconds(lat.p95),
            "99th": to_nanoseconds(lat.p99),
            "max": to_nanoseconds(lat.max),
        },
        "bytes_in": {"total": m.bytes_in.total, "mean": m.bytes_in.mean},
        "bytes_out": {"total": m.bytes_out.total, "mean": m.bytes_out.mean},
        "success": m.success,
        "status_codes": {str(code): count for code, count in m.status_codes.items()},
        "errors": list(m.errors),
    }


def report_json(results: Sequence[Result]) -> bytes:
    try:
        return json.dumps(metrics_to_dict(summarize(results)), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        msg = f"failed encoding JSON report: {exc}"
        raise ReportError(msg) from exc
