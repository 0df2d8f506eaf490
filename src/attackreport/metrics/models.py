from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping


@dataclass(frozen=True, slots=True)
class LatencyMetrics:
    mean: timedelta = timedelta(0)
    p50: timedelta = timedelta(0)
    p95: timedelta = timedelta(0)
    p99: timedelta = timedelta(0)
    max: timedelta = timedelta(0)


@dataclass(frozen=True, slots=True)
class ByteMetrics:
    total: int = 0
    mean: float = 0.0


@dataclass(frozen=True, slots=True)
class Metrics:
    requests: int = 0
    duration: timedelta = timedelta(0)
    wait: timedelta = timedelta(0)
    latencies: LatencyMetrics = field(default_factory=LatencyMetrics)
    bytes_in: ByteMetrics = field(default_factory=ByteMetrics)
    bytes_out: ByteMetrics = field(default_factory=ByteMetrics)
    success: float = 0.0
    status_codes: Mapping[int, int] = field(default_factory=dict)
    errors: tuple[str, ...] = ()

    @property
    def total(self) -> timedelta:
        return self.duration + self.wait
