from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from datetime import timedelta
from pathlib import Path
from typing import BinaryIO, Callable, Sequence, Union

from attackreport.errors import ReportError
from attackreport.metrics import Metrics, compute_metrics
from attackreport.results.models import Result, to_nanoseconds

logger = logging.getLogger(__name__)

Reporter = Callable[[Sequence[Result]], bytes]
"""Renders a timestamp-ordered collection; raises ``ReportError`` on failure."""

Sink = Union[str, Path, BinaryIO]

_UNITS = (
    (1_000_000_000, "s"),
    (1_000_000, "ms"),
    (1_000, "µs"),
)


def format_duration(delta: timedelta) -> str:
    ns = to_nanoseconds(delta)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    for scale, unit in _UNITS:
        if ns >= scale:
            value = f"{ns / scale:.6f}".rstrip("0").rstrip(".")
            return f"{sign}{value}{unit}"
    return f"{sign}{ns}ns"


def summarize(results: Sequence[Result]) -> Metrics:
    try:
        return compute_metrics(results)
    except OverflowError as exc:
        msg = f"failed computing metrics: {exc}"
        raise ReportError(msg) from exc


def write_report(reporter: Reporter, results: Sequence[Result], sink: Sink) -> int:
    """Render ``results`` and write the payload to ``sink``.

    Rendering happens before anything is written. Paths are written through a
    temporary file in the same directory and swapped in with ``os.replace``,
    so a failed report never leaves a partial file behind.
    """
    payload = reporter(results)
    if isinstance(sink, (str, Path)):
        _write_file(Path(sink), payload)
    else:
        try:
            sink.write(payload)
            sink.flush()
        except OSError as exc:
            msg = f"failed writing report: {exc}"
            raise ReportError(msg) from exc
    logger.debug("Wrote %d byte report", len(payload))
    return len(payload)


def _write_file(target: Path, payload: bytes) -> None:
    tmp_path: str | None = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        with os.fdopen(fd, "wb") as fp:
            fp.write(payload)
        os.replace(tmp_path, target)
    except OSError as exc:
        if tmp_path is not None:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
        msg = f"failed writing report to {target}: {exc}"
        raise ReportError(msg) from exc
