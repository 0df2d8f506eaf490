from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np

from attackreport.metrics import Metrics, compute_metrics, percentile
from attackreport.results import Result

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _result(i: int, latency_ms: int, code: int = 200, error: str = "", bytes_in: int = 0, bytes_out: int = 0) -> Result:
    return Result(
        code=code,
        timestamp=T0 + timedelta(seconds=i),
        latency=timedelta(milliseconds=latency_ms),
        bytes_in=bytes_in,
        bytes_out=bytes_out,
        error=error,
    )


def test_empty_collection_is_all_zero() -> None:
    m = compute_metrics([])
    assert m == Metrics()
    assert m.requests == 0
    assert m.success == 0.0
    assert m.bytes_in.mean == 0.0
    assert m.latencies.max == timedelta(0)
    assert m.total == timedelta(0)
    assert dict(m.status_codes) == {}
    assert m.errors == ()


def test_latency_distribution() -> None:
    results = [_result(i, 10 * (i + 1)) for i in range(10)]
    m = compute_metrics(results)
    assert m.requests == 10
    assert m.latencies.mean == timedelta(milliseconds=55)
    assert m.latencies.p50 == timedelta(milliseconds=50)
    assert m.latencies.p95 == timedelta(milliseconds=100)
    assert m.latencies.p99 == timedelta(milliseconds=100)
    assert m.latencies.max == timedelta(milliseconds=100)


def test_percentiles_ignore_input_order() -> None:
    results = [_result(i, latency) for i, latency in enumerate([70, 10, 100, 40, 20, 90, 30, 60, 80, 50])]
    m = compute_metrics(results)
    assert m.latencies.p50 == timedelta(milliseconds=50)
    assert m.latencies.max == timedelta(milliseconds=100)


def test_success_ratio_uses_error_field_only() -> None:
    results = [_result(i, 10, code=200) for i in range(7)]
    results += [_result(7 + i, 10, code=200, error="read timeout") for i in range(3)]
    assert compute_metrics(results).success == 0.70


def test_status_codes_and_error_set() -> None:
    results = [
        _result(0, 10, code=500, error="500 Internal Server Error"),
        _result(1, 10, code=200),
        _result(2, 10, code=0, error="connection refused"),
        _result(3, 10, code=500, error="500 Internal Server Error"),
        _result(4, 10, code=200),
    ]
    m = compute_metrics(results)
    assert list(m.status_codes.items()) == [(0, 1), (200, 2), (500, 2)]
    assert m.errors == ("500 Internal Server Error", "connection refused")


def test_durations_and_bytes() -> None:
    results = [
        _result(0, 10, bytes_in=100, bytes_out=10),
        _result(1, 20, bytes_in=200, bytes_out=10),
        _result(4, 250, bytes_in=300, bytes_out=10),
    ]
    m = compute_metrics(results)
    assert m.duration == timedelta(seconds=4)
    assert m.wait == timedelta(milliseconds=250)
    assert m.total == timedelta(seconds=4, milliseconds=250)
    assert m.bytes_in.total == 600
    assert m.bytes_in.mean == 200.0
    assert m.bytes_out.total == 30
    assert m.bytes_out.mean == 10.0


def test_input_is_not_mutated() -> None:
    results = [_result(i, latency) for i, latency in enumerate([30, 10, 20])]
    snapshot = list(results)
    compute_metrics(results)
    assert results == snapshot


def test_percentile_rank_selection() -> None:
    values = np.array([1, 2, 3, 4])
    assert percentile(values, 0.0) == 1
    assert percentile(values, 0.25) == 1
    assert percentile(values, 0.5) == 2
    assert percentile(values, 0.51) == 3
    assert percentile(values, 1.0) == 4
    assert percentile(np.array([], dtype=np.int64), 0.5) == 0
