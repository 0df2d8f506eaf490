from __future__ import annotations

from attackreport.results.codec import RecordDecoder, encode_result, write_results
from attackreport.results.collector import Channel, Collector, collect, gather_results
from attackreport.results.models import (
    FailureLatency,
    LatencySample,
    RequestLabel,
    Result,
    SuccessLatency,
    from_nanoseconds,
    latency_sample,
    sort_results,
    to_nanoseconds,
)

__all__ = [
    "Channel",
    "Collector",
    "FailureLatency",
    "LatencySample",
    "RecordDecoder",
    "RequestLabel",
    "Result",
    "SuccessLatency",
    "collect",
    "encode_result",
    "from_nanoseconds",
    "gather_results",
    "latency_sample",
    "sort_results",
    "to_nanoseconds",
    "write_results",
]
