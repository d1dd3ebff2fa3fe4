"""Battery segment wiring the provider, reconciler and colour resolver."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from .battery import AggregateResult, BatteryError, BatteryReading, BatteryState, compute
from .config import SegmentConfig
from .provider import BatteryProvider, read_batteries
from .style import TemplateDataContext, resolve_colors

ConfigProvider = Callable[[], SegmentConfig]


@dataclass(frozen=True, slots=True)
class SegmentRender:
    """Everything the status-line renderer needs to draw the segment."""

    enabled: bool
    label: str
    foreground: str
    background: str
    percentage: int = 0
    state: BatteryState = BatteryState.UNKNOWN

    def to_dict(self) -> dict[str, object]:
        return {
            "enabled": self.enabled,
            "label": self.label,
            "foreground": self.foreground,
            "background": self.background,
            "percentage": self.percentage,
            "state": self.state.value,
        }


def render_segment(
    readings: Sequence[BatteryReading] | BatteryError,
    config: SegmentConfig,
) -> SegmentRender:
    """Run one render cycle over already enumerated *readings*."""

    result = compute(readings, config)
    return _render_result(result, config)


def _render_result(result: AggregateResult, config: SegmentConfig) -> SegmentRender:
    if not result.enabled:
        return SegmentRender(
            enabled=False,
            label="",
            foreground=config.foreground,
            background=config.background,
            percentage=result.percentage,
            state=result.state,
        )
    foreground, background = resolve_colors(
        result, config, TemplateDataContext.from_result(result)
    )
    return SegmentRender(
        enabled=True,
        label=result.label,
        foreground=foreground,
        background=background,
        percentage=result.percentage,
        state=result.state,
    )


class BatterySegment:
    """Render the battery segment from a provider and a configuration source.

    The segment keeps no state between renders apart from the last provider
    error, which is remembered only so repeated failures are logged once.
    """

    def __init__(
        self,
        provider: BatteryProvider | Callable[[], Sequence[BatteryReading]],
        config: SegmentConfig | ConfigProvider,
    ) -> None:
        self._provider = provider
        if isinstance(config, SegmentConfig):
            self._config_provider: ConfigProvider = lambda: config
        else:
            self._config_provider = config
        self._last_logged_error: str | None = None
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    @property
    def config(self) -> SegmentConfig:
        return self._config_provider()

    def _read(self) -> list[BatteryReading] | BatteryError:
        readings = read_batteries(self._provider)
        if isinstance(readings, BatteryError):
            detail = readings.message or type(readings).__name__
            if detail != self._last_logged_error:
                self._logger.warning("Battery information unavailable: %s", detail)
                self._last_logged_error = detail
        else:
            self._last_logged_error = None
        return readings

    def aggregate(self) -> AggregateResult:
        return compute(self._read(), self.config)

    def render(self) -> SegmentRender:
        config = self.config
        result = compute(self._read(), config)
        return _render_result(result, config)


__all__ = ["BatterySegment", "SegmentRender", "render_segment"]
