"""Battery information read from the sysfs power supply class."""

from __future__ import annotations

import enum
import math
import os
from dataclasses import dataclass
from pathlib import Path

from barblocks.api import BlockError
from barblocks.battery import BatteryInfo, BatteryStatus, DeviceName, parse_status

POWER_SUPPLY_DEVICES_PATH = "/sys/class/power_supply"

_MICRO = 1e-6
_SECONDS_PER_HOUR = 3600.0


class CapacityLevel(enum.Enum):
    """Coarse capacity level reported by some batteries."""

    FULL = "Full"
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"
    CRITICAL = "Critical"
    UNKNOWN = "Unknown"

    def percentage(self) -> float | None:
        """Approximate capacity in percent, if the level is known."""
        return _LEVEL_PERCENTAGES.get(self)


_LEVEL_PERCENTAGES = {
    CapacityLevel.FULL: 100.0,
    CapacityLevel.HIGH: 75.0,
    CapacityLevel.NORMAL: 50.0,
    CapacityLevel.LOW: 25.0,
    CapacityLevel.CRITICAL: 5.0,
}


def parse_capacity_level(text: str) -> CapacityLevel:
    """Map a capacity level string; anything unknown is UNKNOWN."""
    try:
        return CapacityLevel(text)
    except ValueError:
        return CapacityLevel.UNKNOWN


@dataclass(frozen=True)
class SysfsReadings:
    """Raw sysfs properties; energies, charges, power etc. in micro units."""

    status: BatteryStatus | None = None
    capacity_level: CapacityLevel | None = None
    capacity: float | None = None
    charge_now: float | None = None
    charge_full: float | None = None
    energy_now: float | None = None
    energy_full: float | None = None
    power_now: float | None = None
    current_now: float | None = None
    voltage_now: float | None = None
    time_to_empty: float | None = None
    time_to_full: float | None = None


def _div(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _micro(value: float | None) -> float | None:
    return None if value is None else value * _MICRO


def _first(*values: float | None) -> float | None:
    return next((v for v in values if v is not None), None)


def compute_info(readings: SysfsReadings) -> BatteryInfo:
    """Derive a battery snapshot, filling gaps from whichever properties exist."""
    charge_now = _micro(readings.charge_now)  # Ah
    charge_full = _micro(readings.charge_full)  # Ah
    energy_now = _micro(readings.energy_now)  # Wh
    energy_full = _micro(readings.energy_full)  # Wh
    power_now = _micro(readings.power_now)  # W
    current_now = _micro(readings.current_now)  # A
    voltage_now = _micro(readings.voltage_now)  # V

    status = readings.status if readings.status is not None else BatteryStatus.UNKNOWN

    capacity = readings.capacity
    if capacity is None and charge_now is not None and charge_full is not None:
        capacity = _div(charge_now, charge_full) * 100.0
    if capacity is None and energy_now is not None and energy_full is not None:
        capacity = _div(energy_now, energy_full) * 100.0
    if capacity is None and readings.capacity_level is not None:
        capacity = readings.capacity_level.percentage()
    if capacity is None:
        raise BlockError("Failed to get capacity")

    power = power_now
    if power is None and current_now is not None and voltage_now is not None:
        power = current_now * voltage_now

    time_remaining = None
    if status is BatteryStatus.CHARGING:
        estimate = None
        if energy_now is not None and energy_full is not None and power is not None:
            estimate = _div(energy_full - energy_now, power) * _SECONDS_PER_HOUR
        elif None not in (charge_now, charge_full, voltage_now, power):
            estimate = _div((charge_full - charge_now) * voltage_now, power) * _SECONDS_PER_HOUR
        time_remaining = _first(readings.time_to_full, estimate)
    elif status is BatteryStatus.DISCHARGING:
        estimate = None
        if energy_now is not None and power is not None:
            estimate = _div(energy_now, power) * _SECONDS_PER_HOUR
        elif None not in (charge_now, voltage_now, power):
            estimate = _div(charge_now * voltage_now, power) * _SECONDS_PER_HOUR
        time_remaining = _first(readings.time_to_empty, estimate)

    return BatteryInfo(status=status, capacity=capacity, power=power, time_remaining=time_remaining)


def _read_prop(path: Path, prop: str) -> str | None:
    try:
        return (path / prop).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError):
        return None


def _read_float(path: Path, prop: str) -> float | None:
    text = _read_prop(path, prop)
    if text is None or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def device_available(path: str | os.PathLike) -> bool:
    """Whether the supply at ``path`` is present (HID devices always are)."""
    p = Path(path)
    if _read_prop(p, "scope") == "Device":
        return True
    present = _read_prop(p, "present")
    return present is not None and present.isdigit() and int(present) == 1


def _read_readings(path: Path) -> SysfsReadings:
    status = _read_prop(path, "status")
    level = _read_prop(path, "capacity_level")
    return SysfsReadings(
        status=None if status is None else parse_status(status),
        capacity_level=None if level is None else parse_capacity_level(level),
        capacity=_read_float(path, "capacity"),
        charge_now=_read_float(path, "charge_now"),
        charge_full=_read_float(path, "charge_full"),
        energy_now=_read_float(path, "energy_now"),
        energy_full=_read_float(path, "energy_full"),
        power_now=_read_float(path, "power_now"),
        current_now=_read_float(path, "current_now"),
        voltage_now=_read_float(path, "voltage_now"),
        time_to_empty=_read_float(path, "time_to_empty"),
        time_to_full=_read_float(path, "time_to_full"),
    )


class SysfsBattery:
    """A battery found under the sysfs power supply directory."""

    def __init__(
        self,
        dev_name: DeviceName | None = None,
        root: str | os.PathLike = POWER_SUPPLY_DEVICES_PATH,
    ):
        self.dev_name = dev_name if dev_name is not None else DeviceName()
        self.root = Path(root)
        self._dev_path: Path | None = None

    def device_path(self) -> Path | None:
        """The cached device if still available, else the best matching battery."""
        if self._dev_path is not None and device_available(self._dev_path):
            return self._dev_path

        try:
            entries = sorted(self.root.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise BlockError("failed to read /sys/class/power_supply directory") from exc

        matching = None
        for path in entries:
            name = path.name
            if (
                not self.dev_name.matches(name)
                or _read_prop(path, "type") != "Battery"
                or not device_available(path)
            ):
                continue
            # Prefer the system battery over e.g. a mouse or keyboard battery.
            if name.startswith(("BAT", "CMB")):
                self._dev_path = path
                return path
            matching = path

        if matching is not None:
            self._dev_path = matching
        return matching

    def get_info(self) -> BatteryInfo | None:
        """Current battery information, or None when no battery is available."""
        path = self.device_path()
        if path is None:
            return None
        readings = _read_readings(path)
        if not device_available(path):
            return None
        return compute_info(readings)