"""Battery segment package computing status-line battery display state."""

from typing import Any

from .battery import (
    AggregateResult,
    BatteryError,
    BatteryReading,
    BatteryState,
    NoBatteryError,
    ProviderError,
    compute,
    map_most_logical_state,
)
from .config import SegmentConfig
from .segment import BatterySegment, SegmentRender, render_segment
from .style import TemplateDataContext, resolve
from .version import APP_VERSION


def create_app(*args: Any, **kwargs: Any):
    from .app import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "APP_VERSION",
    "AggregateResult",
    "BatteryError",
    "BatteryReading",
    "BatterySegment",
    "BatteryState",
    "NoBatteryError",
    "ProviderError",
    "SegmentConfig",
    "SegmentRender",
    "TemplateDataContext",
    "compute",
    "create_app",
    "map_most_logical_state",
    "render_segment",
    "resolve",
]
