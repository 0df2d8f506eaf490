from __future__ import annotations

from attackreport.metrics.aggregator import compute_metrics, percentile
from attackreport.metrics.models import ByteMetrics, LatencyMetrics, Metrics

__all__ = ["ByteMetrics", "LatencyMetrics", "Metrics", "compute_metrics", "percentile"]
