from __future__ import annotations

import math
from collections import Counter
from typing import Sequence

import numpy as np

from attackreport.metrics.models import ByteMetrics, LatencyMetrics, Metrics
from attackreport.results.models import Result, from_nanoseconds, to_nanoseconds


def percentile(sorted_values: np.ndarray, p: float) -> int:
    """Nearest-rank percentile of an ascending array, no interpolation."""
    n = len(sorted_values)
    if n == 0:
        return 0
    idx = min(max(math.ceil(p * n) - 1, 0), n - 1)
    return int(sorted_values[idx])


def compute_metrics(results: Sequence[Result]) -> Metrics:
    """Summarise a timestamp-ordered result collection.

    The input is left untouched; empty input yields an all-zero ``Metrics``.
    """
    if not results:
        return Metrics()

    requests = len(results)
    latencies = np.sort(
        np.fromiter((to_nanoseconds(r.latency) for r in results), dtype=np.int64, count=requests)
    )
    bytes_in = int(sum(r.bytes_in for r in results))
    bytes_out = int(sum(r.bytes_out for r in results))
    successes = sum(1 for r in results if r.success)

    codes = Counter(r.code for r in results)
    errors: dict[str, None] = {}
    for r in results:
        if r.error:
            errors.setdefault(r.error, None)

    first, last = results[0], results[-1]
    return Metrics(
        requests=requests,
        duration=last.timestamp - first.timestamp,
        wait=last.latency,
        latencies=LatencyMetrics(
            mean=from_nanoseconds(int(round(float(latencies.mean())))),
            p50=from_nanoseconds(percentile(latencies, 0.50)),
            p95=from_nanoseconds(percentile(latencies, 0.95)),
            p99=from_nanoseconds(percentile(latencies, 0.99)),
            max=from_nanoseconds(int(latencies[-1])),
        ),
        bytes_in=ByteMetrics(total=bytes_in, mean=bytes_in / requests),
        bytes_out=ByteMetrics(total=bytes_out, mean=bytes_out / requests),
        success=successes / requests,
        status_codes={code: codes[code] for code in sorted(codes)},
        errors=tuple(errors),
    )
