"""Battery providers feeding readings into the segment."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Protocol, Sequence

from .battery import BatteryError, BatteryReading, BatteryState, NoBatteryError, ProviderError


logger = logging.getLogger(__name__)


class BatteryProvider(Protocol):
    """Anything able to enumerate the host's batteries."""

    def read(self) -> list[BatteryReading]:
        ...


class StaticBatteryProvider:
    """Return a fixed set of readings, or raise a fixed error."""

    def __init__(
        self,
        readings: Iterable[BatteryReading] = (),
        *,
        error: BatteryError | None = None,
    ) -> None:
        self._readings = list(readings)
        self._error = error

    def read(self) -> list[BatteryReading]:
        if self._error is not None:
            raise self._error
        return list(self._readings)


class PsutilBatteryProvider:
    """Expose :func:`psutil.sensors_battery` as a single battery reading.

    psutil only reports a percentage, so the reading uses a design capacity
    of 100 with the percentage as its charge.
    """

    DESIGN_CAPACITY = 100.0

    def __init__(self, sensor: Callable[[], object | None] | None = None) -> None:
        self._sensor = sensor

    def _obtain_sensor(self) -> Callable[[], object | None]:
        if self._sensor is not None:
            return self._sensor
        try:
            import psutil
        except ModuleNotFoundError as exc:
            raise ProviderError("install psutil to read battery information") from exc
        sensor = getattr(psutil, "sensors_battery", None)
        if sensor is None:
            raise ProviderError("battery information is not supported on this platform")
        self._sensor = sensor
        return sensor

    @staticmethod
    def _state_for(percent: float, plugged: bool | None) -> BatteryState:
        if plugged is None:
            return BatteryState.UNKNOWN
        if plugged:
            return BatteryState.FULL if percent >= 100.0 else BatteryState.CHARGING
        if percent <= 0.0:
            return BatteryState.EMPTY
        return BatteryState.DISCHARGING

    def read(self) -> list[BatteryReading]:
        sensor = self._obtain_sensor()
        try:
            status = sensor()
        except Exception as exc:
            raise ProviderError(f"unable to read battery status: {exc}") from exc
        if status is None:
            raise NoBatteryError()
        try:
            percent = float(getattr(status, "percent"))
        except (AttributeError, TypeError, ValueError) as exc:
            raise ProviderError("battery status did not include a percentage") from exc
        plugged = getattr(status, "power_plugged", None)
        state = self._state_for(percent, plugged)
        logger.debug("psutil reported %.1f%% (plugged=%s)", percent, plugged)
        return [
            BatteryReading(
                design_capacity=self.DESIGN_CAPACITY,
                current_charge=percent,
                state=state,
            )
        ]


def read_batteries(
    provider: BatteryProvider | Callable[[], Sequence[BatteryReading]],
) -> list[BatteryReading] | BatteryError:
    """Call *provider* and return either its readings or the error it raised."""

    reader = getattr(provider, "read", provider)
    try:
        return list(reader())
    except BatteryError as exc:
        return exc
    except Exception as exc:
        logger.debug("Battery provider raised %s", type(exc).__name__, exc_info=True)
        return ProviderError(str(exc) or type(exc).__name__)


__all__ = [
    "BatteryProvider",
    "PsutilBatteryProvider",
    "StaticBatteryProvider",
    "read_batteries",
]
