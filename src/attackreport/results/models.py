from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Union


@dataclass(frozen=True, slots=True)
class RequestLabel:
    method: str
    url: str


@dataclass(frozen=True, slots=True)
class Result:
    """Outcome of one request issued during an attack.

    ``error`` is the only success discriminator: an empty string means success
    no matter what ``code`` holds.
    """

    code: int
    timestamp: datetime
    latency: timedelta
    bytes_out: int = 0
    bytes_in: int = 0
    error: str = ""
    request: RequestLabel | None = None

    @property
    def success(self) -> bool:
        return self.error == ""


@dataclass(frozen=True, slots=True)
class SuccessLatency:
    latency: timedelta


@dataclass(frozen=True, slots=True)
class FailureLatency:
    latency: timedelta


LatencySample = Union[SuccessLatency, FailureLatency]


def latency_sample(result: Result) -> LatencySample:
    if result.success:
        return SuccessLatency(result.latency)
    return FailureLatency(result.latency)


def sort_results(results: Iterable[Result]) -> list[Result]:
    # sorted() is stable, so equal timestamps keep arrival order
    return sorted(results, key=lambda r: r.timestamp)


def to_nanoseconds(delta: timedelta) -> int:
    return ((delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds) * 1_000


def from_nanoseconds(ns: int) -> timedelta:
    return timedelta(microseconds=ns // 1_000)
