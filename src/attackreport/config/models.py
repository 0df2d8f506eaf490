from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

DEFAULT_MAX_FRAME_SIZE = 1 << 20


@dataclass(frozen=True, slots=True)
class CollectorConfig:
    buffer_size: int = 64  # 0 means unbounded channels
    max_consecutive_errors: int | None = 64  # None retries forever
    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE

    def __post_init__(self) -> None:
        if self.buffer_size < 0:
            msg = f"buffer_size must be >= 0, got {self.buffer_size}"
            raise ValueError(msg)
        if self.max_consecutive_errors is not None and self.max_consecutive_errors < 1:
            msg = f"max_consecutive_errors must be >= 1, got {self.max_consecutive_errors}"
            raise ValueError(msg)
        if self.max_frame_size < 1:
            msg = f"max_frame_size must be >= 1, got {self.max_frame_size}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class PlotConfig:
    title: str = "Attack Plot"
    height_px: int = 600
    log_scale: bool = True
    ok_color: str = "#8AE234"
    err_color: str = "#FA7878"


@dataclass(frozen=True, slots=True)
class ReportConfig:
    reporter: str = "text"
    output: Path | None = None  # None writes to stdout
    inputs: tuple[Path, ...] = ()  # empty reads stdin
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    plot: PlotConfig = field(default_factory=PlotConfig)

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "reporter": self.reporter,
            "output": str(self.output) if self.output else "stdout",
            "inputs": [str(p) for p in self.inputs] or ["stdin"],
            "collector": {
                "buffer_size": self.collector.buffer_size,
                "max_consecutive_errors": self.collector.max_consecutive_errors,
                "max_frame_size": self.collector.max_frame_size,
            },
            "plot": {
                "title": self.plot.title,
                "height_px": self.plot.height_px,
                "log_scale": self.plot.log_scale,
            },
        }
