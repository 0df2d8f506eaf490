from __future__ import annotations

from attackreport.config.models import (
    DEFAULT_MAX_FRAME_SIZE,
    CollectorConfig,
    PlotConfig,
    ReportConfig,
)

__all__ = [
    "DEFAULT_MAX_FRAME_SIZE",
    "CollectorConfig",
    "PlotConfig",
    "ReportConfig",
]
