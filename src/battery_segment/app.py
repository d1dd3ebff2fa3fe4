"""FastAPI application exposing the battery segment."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from .battery import BatteryReading, NoBatteryError, ProviderError
from .config import DEFAULT_CONFIG_PATH, ConfigManager, parse_segment_config
from .provider import BatteryProvider, PsutilBatteryProvider
from .segment import BatterySegment, render_segment
from .version import APP_VERSION


class SegmentConfigPayload(BaseModel):
    charging_icon: str | None = None
    charged_icon: str | None = None
    discharging_icon: str | None = None
    display_error: bool | None = None
    display_charging: bool | None = None
    colorize_background: bool | None = None
    charging_color: str | None = None
    discharging_color: str | None = None
    charged_color: str | None = None
    foreground: str | None = None
    background: str | None = None
    foreground_templates: list[str] | None = None
    background_templates: list[str] | None = None


class BatteryReadingPayload(BaseModel):
    design_capacity: float = Field(ge=0)
    current_charge: float
    state: Literal["Unknown", "Empty", "Full", "Charging", "Discharging"] = "Unknown"


class SegmentPreviewPayload(BaseModel):
    batteries: list[BatteryReadingPayload] = Field(default_factory=list)
    error: str | None = None
    no_battery: bool = False
    config: SegmentConfigPayload | None = None


def create_app(
    config_path: Path | str = DEFAULT_CONFIG_PATH,
    *,
    provider: BatteryProvider | None = None,
) -> FastAPI:
    app = FastAPI(title="Battery Segment", version=APP_VERSION)

    logger = logging.getLogger(__name__)

    config_manager = ConfigManager(Path(config_path))
    if provider is None:
        provider = PsutilBatteryProvider()
    segment = BatterySegment(provider, config_manager.get_segment_config)

    app.state.config_manager = config_manager
    app.state.segment = segment

    @app.get("/api/segment")
    async def get_segment() -> dict[str, object]:
        rendered = await run_in_threadpool(segment.render)
        return rendered.to_dict()

    @app.get("/api/segment/aggregate")
    async def get_segment_aggregate() -> dict[str, object | None]:
        result = await run_in_threadpool(segment.aggregate)
        return result.to_dict()

    @app.get("/api/segment/config")
    async def get_segment_config() -> dict[str, object]:
        return config_manager.get_segment_config().to_dict()

    @app.post("/api/segment/config")
    async def update_segment_config(payload: SegmentConfigPayload) -> dict[str, object]:
        try:
            updated = config_manager.set_segment_config(payload.model_dump(exclude_none=True))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        logger.info("Battery segment configuration updated")
        return updated.to_dict()

    @app.post("/api/segment/preview")
    async def preview_segment(payload: SegmentPreviewPayload) -> dict[str, object]:
        current = config_manager.get_segment_config()
        try:
            config = (
                parse_segment_config(payload.config.model_dump(exclude_none=True), default=current)
                if payload.config is not None
                else current
            )
            if payload.no_battery:
                readings: list[BatteryReading] | NoBatteryError | ProviderError = NoBatteryError()
            elif payload.error is not None:
                readings = ProviderError(payload.error)
            else:
                readings = [
                    BatteryReading(item.design_capacity, item.current_charge, item.state)
                    for item in payload.batteries
                ]
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return render_segment(readings, config).to_dict()

    return app


__all__ = ["create_app"]
