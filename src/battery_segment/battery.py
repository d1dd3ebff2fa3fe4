"""Battery state reconciliation for the status-line battery segment."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Sequence

if TYPE_CHECKING:
    from .config import SegmentConfig


logger = logging.getLogger(__name__)

NO_BATTERY_MESSAGE = "no battery"


class BatteryState(str, Enum):
    """Charge state reported by a single battery source."""

    UNKNOWN = "Unknown"
    EMPTY = "Empty"
    FULL = "Full"
    CHARGING = "Charging"
    DISCHARGING = "Discharging"

    def __str__(self) -> str:
        return self.value


# Higher wins when two sources disagree.
STATE_PRIORITY: dict[BatteryState, int] = {
    BatteryState.EMPTY: 0,
    BatteryState.UNKNOWN: 1,
    BatteryState.FULL: 2,
    BatteryState.CHARGING: 3,
    BatteryState.DISCHARGING: 4,
}


class BatteryError(RuntimeError):
    """Base exception raised when battery information cannot be enumerated."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoBatteryError(BatteryError):
    """Raised when the host exposes no battery device at all."""

    def __init__(self, message: str = NO_BATTERY_MESSAGE) -> None:
        super().__init__(message)


class ProviderError(BatteryError):
    """Raised for any other failure while enumerating batteries."""


def _parse_state(value: object) -> BatteryState:
    if isinstance(value, BatteryState):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        for state in BatteryState:
            if state.value.lower() == text:
                return state
    raise ValueError(f"Unknown battery state: {value!r}")


@dataclass(frozen=True, slots=True)
class BatteryReading:
    """Snapshot of one physical or virtual battery source."""

    design_capacity: float
    current_charge: float
    state: BatteryState = BatteryState.UNKNOWN

    def __post_init__(self) -> None:
        try:
            capacity = float(self.design_capacity)
            charge = float(self.current_charge)
        except (TypeError, ValueError) as exc:
            raise ValueError("Battery capacity and charge must be numeric") from exc
        if not math.isfinite(capacity) or not math.isfinite(charge):
            raise ValueError("Battery capacity and charge must be finite")
        if capacity < 0:
            raise ValueError("Battery design capacity cannot be negative")
        object.__setattr__(self, "design_capacity", capacity)
        object.__setattr__(self, "current_charge", charge)
        object.__setattr__(self, "state", _parse_state(self.state))

    @property
    def percentage(self) -> int:
        return charge_percentage(self.current_charge, self.design_capacity)

    def to_dict(self) -> dict[str, object]:
        return {
            "design_capacity": self.design_capacity,
            "current_charge": self.current_charge,
            "state": self.state.value,
        }


@dataclass(frozen=True, slots=True)
class AggregateResult:
    """Display state derived from every reading of one render cycle."""

    enabled: bool
    label: str = ""
    percentage: int = 0
    state: BatteryState = BatteryState.UNKNOWN
    error_text: str = ""
    battery: BatteryReading | None = None
    batteries: tuple[BatteryReading, ...] = field(default_factory=tuple)

    @property
    def failed(self) -> bool:
        return bool(self.error_text)

    def to_dict(self) -> dict[str, object | None]:
        """Serialise the result into a JSON-friendly dictionary."""
        return {
            "enabled": self.enabled,
            "label": self.label,
            "percentage": self.percentage,
            "state": self.state.value,
            "error": self.error_text or None,
            "battery": self.battery.to_dict() if self.battery is not None else None,
            "batteries": [reading.to_dict() for reading in self.batteries],
        }


def charge_percentage(charge: float, capacity: float) -> int:
    """Return *charge* as a whole percentage of *capacity* clamped to 0-100."""

    if capacity <= 0:
        return 0
    ratio = float(charge) / float(capacity) * 100.0
    if not math.isfinite(ratio):
        return 0
    # Halves round up.
    return int(min(100, max(0, math.floor(ratio + 0.5))))


def map_most_logical_state(current: BatteryState, new: BatteryState) -> BatteryState:
    """Combine two battery states, keeping whichever should be displayed.

    A discharging source dominates everything else, so a single drained pack
    makes the whole system read as discharging. Charging outranks a full or
    unknown pack.
    """

    if STATE_PRIORITY[new] >= STATE_PRIORITY[current]:
        return new
    return current


def reconcile_states(states: Iterable[BatteryState]) -> BatteryState:
    """Fold *states* in order using :func:`map_most_logical_state`."""

    iterator = iter(states)
    try:
        reconciled = next(iterator)
    except StopIteration:
        return BatteryState.UNKNOWN
    for state in iterator:
        reconciled = map_most_logical_state(reconciled, state)
    return reconciled


def state_icon(state: BatteryState, config: "SegmentConfig") -> str:
    if state is BatteryState.CHARGING:
        return config.charging_icon
    if state is BatteryState.FULL:
        return config.charged_icon
    if state is BatteryState.DISCHARGING:
        return config.discharging_icon
    return ""


def aggregate(readings: Sequence[BatteryReading]) -> BatteryReading:
    """Merge *readings* into one logical battery.

    Charge and capacity are summed so sources with larger packs weigh more in
    the resulting percentage than a plain mean of per-pack levels would.
    """

    if not readings:
        raise ValueError("At least one battery reading is required")
    capacity = math.fsum(reading.design_capacity for reading in readings)
    charge = math.fsum(reading.current_charge for reading in readings)
    state = reconcile_states(reading.state for reading in readings)
    return BatteryReading(design_capacity=capacity, current_charge=charge, state=state)


def _error_result(error: BatteryError, config: "SegmentConfig") -> AggregateResult:
    if isinstance(error, NoBatteryError):
        text = NO_BATTERY_MESSAGE
    else:
        text = str(error.message).strip() or type(error).__name__
    logger.debug("Battery enumeration failed: %s", text)
    if not config.display_error:
        return AggregateResult(enabled=False, error_text=text)
    return AggregateResult(enabled=True, label=text, error_text=text)


def compute(
    readings: Sequence[BatteryReading] | BatteryError,
    config: "SegmentConfig",
) -> AggregateResult:
    """Reconcile *readings* into the segment's display state.

    *readings* is either the provider's list of readings or the error it
    raised. Errors never escape: they either disable the segment or, when
    ``display_error`` is set, become the label.
    """

    if isinstance(readings, BatteryError):
        return _error_result(readings, config)
    batteries = tuple(readings)
    if not batteries:
        return _error_result(NoBatteryError(), config)

    battery = aggregate(batteries)
    percentage = battery.percentage
    state = battery.state
    label = f"{state_icon(state, config)}{percentage}"

    enabled = True
    if not config.display_charging and state in (BatteryState.CHARGING, BatteryState.FULL):
        logger.debug("Hiding battery segment while %s", state.value)
        enabled = False

    return AggregateResult(
        enabled=enabled,
        label=label,
        percentage=percentage,
        state=state,
        battery=battery,
        batteries=batteries,
    )


__all__ = [
    "AggregateResult",
    "BatteryError",
    "BatteryReading",
    "BatteryState",
    "NO_BATTERY_MESSAGE",
    "NoBatteryError",
    "ProviderError",
    "STATE_PRIORITY",
    "aggregate",
    "charge_percentage",
    "compute",
    "map_most_logical_state",
    "reconcile_states",
    "state_icon",
]
