"""Colour resolution for the battery segment using Jinja2 templates."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Iterable, Mapping

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from .battery import AggregateResult, BatteryReading, BatteryState

if TYPE_CHECKING:
    from .config import SegmentConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TemplateDataContext:
    """Read-only values exposed to colour templates."""

    percentage: int
    state: BatteryState
    battery: BatteryReading | None = None
    batteries: tuple[BatteryReading, ...] = field(default_factory=tuple)
    enabled: bool = True

    @classmethod
    def from_result(cls, result: AggregateResult) -> "TemplateDataContext":
        return cls(
            percentage=result.percentage,
            state=result.state,
            battery=result.battery,
            batteries=result.batteries,
            enabled=result.enabled,
        )

    def as_mapping(self) -> Mapping[str, object]:
        return {
            "percentage": self.percentage,
            "state": self.state.value,
            "battery": self.battery,
            "batteries": self.batteries,
            "enabled": self.enabled,
        }


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(autoescape=False, undefined=StrictUndefined)


@lru_cache(maxsize=256)
def _compile(source: str) -> Template:
    return _environment().from_string(source)


def evaluate(template: str, context: TemplateDataContext) -> str | None:
    """Render *template* against *context*.

    Returns ``None`` when the template renders nothing (its guard did not
    match) or fails to render at all.
    """

    try:
        rendered = _compile(template).render(context.as_mapping())
    except TemplateError as exc:
        logger.debug("Colour template %r failed: %s", template, exc)
        return None
    except Exception as exc:
        logger.debug("Colour template %r raised %s: %s", template, type(exc).__name__, exc)
        return None
    text = rendered.strip()
    return text or None


def resolve(templates: Iterable[str], default: str, context: TemplateDataContext) -> str:
    """Return the first non-empty template result, else *default*."""

    for template in templates:
        value = evaluate(template, context)
        if value is not None:
            return value
    return default


def state_color(state: BatteryState, config: "SegmentConfig") -> str | None:
    if state is BatteryState.CHARGING:
        return config.charging_color
    if state is BatteryState.FULL:
        return config.charged_color
    if state is BatteryState.DISCHARGING:
        return config.discharging_color
    return None


def resolve_colors(
    result: AggregateResult,
    config: "SegmentConfig",
    context: TemplateDataContext | None = None,
) -> tuple[str, str]:
    """Pick the foreground and background colours for *result*.

    The state colour replaces exactly one of the configured defaults,
    selected by ``colorize_background``. Each slot's templates are then
    evaluated with that value as their fallback.
    """

    foreground = config.foreground
    background = config.background
    color = None if result.failed else state_color(result.state, config)
    if color:
        if config.colorize_background:
            background = color
        else:
            foreground = color
    if context is None:
        context = TemplateDataContext.from_result(result)
    return (
        resolve(config.foreground_templates, foreground, context),
        resolve(config.background_templates, background, context),
    )


__all__ = [
    "TemplateDataContext",
    "evaluate",
    "resolve",
    "resolve_colors",
    "state_color",
]
