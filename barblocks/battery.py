"""Battery status model shared by the battery drivers."""

from __future__ import annotations

import dataclasses
import enum
import math
import re
from dataclasses import dataclass

from barblocks.api import BlockError, State

DEFAULT_INFO = 60.0
DEFAULT_GOOD = 60.0
DEFAULT_WARNING = 30.0
DEFAULT_CRITICAL = 15.0
DEFAULT_FULL_THRESHOLD = 95.0
DEFAULT_EMPTY_THRESHOLD = 7.5

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


class BatteryStatus(enum.Enum):
    """Charging state of a battery."""

    CHARGING = "Charging"
    DISCHARGING = "Discharging"
    EMPTY = "Empty"
    FULL = "Full"
    NOT_CHARGING = "Not charging"
    UNKNOWN = "Unknown"


def parse_status(text: str) -> BatteryStatus:
    """Map a sysfs-style status string to a status; anything unknown is UNKNOWN."""
    try:
        return BatteryStatus(text)
    except ValueError:
        return BatteryStatus.UNKNOWN


@dataclass(frozen=True)
class BatteryInfo:
    """A snapshot of a battery's state."""

    status: BatteryStatus
    capacity: float
    power: float | None = None
    time_remaining: float | None = None


class DeviceName:
    """Which device to use: any device, or those whose name matches a regex."""

    def __init__(self, pattern: str | None = None):
        self._pattern = pattern
        if pattern is None:
            self._regex = None
        else:
            try:
                self._regex = re.compile(pattern)
            except re.error as exc:
                raise BlockError("failed to parse regex") from exc

    def matches(self, name: str) -> bool:
        """Whether ``name`` is acceptable."""
        return self._regex is None or self._regex.search(name) is not None

    def exact(self) -> str | None:
        """The pattern text, if one was given."""
        return self._pattern

    def __repr__(self) -> str:
        if self._pattern is None:
            return "DeviceName(any)"
        return f"DeviceName({self._pattern!r})"


@dataclass(frozen=True)
class Thresholds:
    """Capacity levels (percent) that decide the block state."""

    info: float = DEFAULT_INFO
    good: float = DEFAULT_GOOD
    warning: float = DEFAULT_WARNING
    critical: float = DEFAULT_CRITICAL


def apply_thresholds(
    info: BatteryInfo,
    full_threshold: float = DEFAULT_FULL_THRESHOLD,
    empty_threshold: float = DEFAULT_EMPTY_THRESHOLD,
) -> BatteryInfo:
    """Report the battery as full or empty once its capacity crosses a threshold."""
    if info.capacity >= full_threshold:
        return dataclasses.replace(info, status=BatteryStatus.FULL)
    if info.capacity <= empty_threshold:
        return dataclasses.replace(info, status=BatteryStatus.EMPTY)
    return info


def _as_i32(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= _I32_MAX:
        return _I32_MAX
    if value <= _I32_MIN:
        return _I32_MIN
    return int(value)


def format_time(seconds: float) -> str:
    """Render a duration in seconds as ``H:MM``."""
    hours = _as_i32(seconds / 3600.0)
    minutes = _as_i32(math.fmod(seconds, 3600.0) / 60.0)
    return f"{hours}:{minutes:02}"


def battery_state(info: BatteryInfo, thresholds: Thresholds | None = None) -> State:
    """Block state for a battery snapshot."""
    t = thresholds if thresholds is not None else Thresholds()
    if info.status is BatteryStatus.EMPTY:
        return State.CRITICAL
    if info.status is BatteryStatus.FULL:
        return State.IDLE
    if info.status is BatteryStatus.CHARGING:
        return State.GOOD
    capacity = info.capacity
    if capacity <= t.critical:
        return State.CRITICAL
    if capacity <= t.warning:
        return State.WARNING
    if capacity <= t.info:
        return State.INFO
    if capacity > t.good:
        return State.GOOD
    return State.IDLE


def battery_values(info: BatteryInfo) -> dict[str, float | str]:
    """Placeholder values: ``percentage`` always, ``power`` and ``time`` when known."""
    values: dict[str, float | str] = {"percentage": info.capacity}
    if info.power is not None:
        values["power"] = info.power
    if info.time_remaining is not None:
        values["time"] = format_time(info.time_remaining)
    return values