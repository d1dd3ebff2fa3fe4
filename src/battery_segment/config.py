"""Configuration management for the battery segment."""
from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Mapping, Sequence

DEFAULT_CONFIG_PATH = Path(os.environ.get("BATTERY_SEGMENT_CONFIG", "data/segment.json"))

DEFAULT_FOREGROUND = "#ffffff"
DEFAULT_BACKGROUND = "#111111"

# camelCase spellings used by status-line theme files.
_OPTION_ALIASES: dict[str, str] = {
    "chargingIcon": "charging_icon",
    "chargedIcon": "charged_icon",
    "dischargingIcon": "discharging_icon",
    "displayError": "display_error",
    "displayCharging": "display_charging",
    "colorizeBackground": "colorize_background",
    "colorBackground": "colorize_background",
    "chargingColor": "charging_color",
    "dischargingColor": "discharging_color",
    "chargedColor": "charged_color",
    "foregroundTemplates": "foreground_templates",
    "backgroundTemplates": "background_templates",
}


@dataclass(frozen=True, slots=True)
class SegmentConfig:
    """Static configuration consumed by one battery segment render."""

    charging_icon: str = ""
    charged_icon: str = ""
    discharging_icon: str = ""
    display_error: bool = False
    display_charging: bool = True
    colorize_background: bool = False
    charging_color: str | None = None
    discharging_color: str | None = None
    charged_color: str | None = None
    foreground: str = DEFAULT_FOREGROUND
    background: str = DEFAULT_BACKGROUND
    foreground_templates: tuple[str, ...] = ()
    background_templates: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("charging_icon", "charged_icon", "discharging_icon", "foreground", "background"):
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"{name} must be a string")
        for name in ("charging_color", "discharging_color", "charged_color"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"{name} must be a string")
        for name in ("foreground_templates", "background_templates"):
            templates = tuple(getattr(self, name))
            if not all(isinstance(item, str) for item in templates):
                raise ValueError(f"{name} must only contain strings")
            object.__setattr__(self, name, templates)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            payload[item.name] = list(value) if isinstance(value, tuple) else value
        return payload


DEFAULT_SEGMENT_CONFIG = SegmentConfig()


def _parse_flag(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if math.isnan(float(value)):
            raise ValueError("Segment flags must be boolean values")
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return default
        if text in {"true", "1", "yes", "on", "enabled"}:
            return True
        if text in {"false", "0", "no", "off", "disabled"}:
            return False
    raise ValueError("Segment flags must be boolean values")


def _parse_text(value: Any, *, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError("Segment icons and colours must be strings")
    return value


def _parse_color(value: Any, *, default: str | None) -> str | None:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError("Segment colours must be strings")
    text = value.strip()
    return text or None


def _parse_templates(value: Any, *, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        # A single template is accepted in place of a one-item list.
        return (value,)
    if not isinstance(value, Sequence):
        raise ValueError("Colour templates must be a list of strings")
    templates: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("Colour templates must be a list of strings")
        templates.append(item)
    return tuple(templates)


def _normalise_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    normalised: dict[str, Any] = {}
    for key, value in data.items():
        normalised[_OPTION_ALIASES.get(key, key)] = value
    return normalised


def parse_segment_config(
    data: Mapping[str, Any] | SegmentConfig | None,
    *,
    default: SegmentConfig = DEFAULT_SEGMENT_CONFIG,
) -> SegmentConfig:
    """Build a :class:`SegmentConfig` from a loosely typed mapping.

    Keys missing from *data* keep the value from *default*, so partial
    updates can be applied on top of the current configuration.
    """

    if data is None:
        return default
    if isinstance(data, SegmentConfig):
        return data
    if not isinstance(data, Mapping):
        raise ValueError("Segment configuration must be a mapping")
    payload = _normalise_keys(data)
    if "segment" in payload and isinstance(payload["segment"], Mapping):
        return parse_segment_config(payload["segment"], default=default)
    return replace(
        default,
        charging_icon=_parse_text(payload.get("charging_icon"), default=default.charging_icon),
        charged_icon=_parse_text(payload.get("charged_icon"), default=default.charged_icon),
        discharging_icon=_parse_text(
            payload.get("discharging_icon"), default=default.discharging_icon
        ),
        display_error=_parse_flag(payload.get("display_error"), default=default.display_error),
        display_charging=_parse_flag(
            payload.get("display_charging"), default=default.display_charging
        ),
        colorize_background=_parse_flag(
            payload.get("colorize_background"), default=default.colorize_background
        ),
        charging_color=_parse_color(
            payload.get("charging_color"), default=default.charging_color
        ),
        discharging_color=_parse_color(
            payload.get("discharging_color"), default=default.discharging_color
        ),
        charged_color=_parse_color(payload.get("charged_color"), default=default.charged_color),
        foreground=_parse_text(payload.get("foreground"), default=default.foreground),
        background=_parse_text(payload.get("background"), default=default.background),
        foreground_templates=_parse_templates(
            payload.get("foreground_templates"), default=default.foreground_templates
        ),
        background_templates=_parse_templates(
            payload.get("background_templates"), default=default.background_templates
        ),
    )


class ConfigManager:
    """Stores the segment configuration on disk with thread-safety."""

    def __init__(self, config_path: Path | str = DEFAULT_CONFIG_PATH) -> None:
        self._path = Path(config_path)
        self._lock = Lock()
        self._ensure_parent()
        self._segment = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_parent(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> SegmentConfig:
        if not self._path.exists():
            return DEFAULT_SEGMENT_CONFIG
        try:
            payload = json.loads(self._path.read_text())
            if not isinstance(payload, Mapping):
                raise ValueError("Configuration file must contain a JSON object")
            return parse_segment_config(payload)
        except (OSError, ValueError) as exc:
            raise RuntimeError(f"Failed to load configuration: {exc}") from exc

    def _save(self) -> None:
        payload: Dict[str, Any] = {"segment": self._segment.to_dict()}
        self._path.write_text(json.dumps(payload, indent=2))

    def get_segment_config(self) -> SegmentConfig:
        with self._lock:
            return self._segment

    def set_segment_config(self, data: Mapping[str, Any] | SegmentConfig) -> SegmentConfig:
        with self._lock:
            segment = parse_segment_config(data, default=self._segment)
            self._segment = segment
            self._save()
        return segment

    def reset(self) -> SegmentConfig:
        with self._lock:
            self._segment = DEFAULT_SEGMENT_CONFIG
            self._save()
        return self._segment


__all__ = [
    "ConfigManager",
    "DEFAULT_BACKGROUND",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_FOREGROUND",
    "DEFAULT_SEGMENT_CONFIG",
    "SegmentConfig",
    "parse_segment_config",
]
