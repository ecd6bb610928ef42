"""Disk usage statistics."""

from __future__ import annotations

import enum
import math
import os
from dataclasses import dataclass

from barblocks.api import BlockError, State

DEFAULT_WARNING = 20.0
DEFAULT_ALERT = 10.0


class InfoType(enum.Enum):
    """Which quantity drives the block state."""

    AVAILABLE = "available"
    FREE = "free"
    USED = "used"


class Prefix(enum.Enum):
    """Unit prefixes accepted for the alert thresholds."""

    ONE = "B"
    KILO = "KB"
    MEGA = "MB"
    GIGA = "GB"
    TERA = "TB"


_UNIT_MULTIPLIERS = {
    Prefix.TERA: 1e-12,
    Prefix.GIGA: 1e-9,
    Prefix.MEGA: 1e-6,
    Prefix.KILO: 1e-3,
    Prefix.ONE: 1.0,
}


@dataclass(frozen=True)
class DiskUsage:
    """Space figures of a filesystem, in bytes."""

    total: int
    used: int
    free: int
    available: int

    def value(self, info_type: InfoType) -> float:
        """The figure selected by ``info_type``."""
        if info_type is InfoType.AVAILABLE:
            return float(self.available)
        if info_type is InfoType.FREE:
            return float(self.free)
        return float(self.used)

    def percentage(self, info_type: InfoType) -> float:
        """The selected figure as a percentage of the total."""
        value = self.value(info_type)
        if self.total == 0:
            return math.nan if value == 0 else math.inf
        return value / float(self.total) * 100.0


def parse_alert_unit(unit: str | None) -> Prefix | None:
    """Turn the ``alert_unit`` option into a prefix; None means percents."""
    if unit is None:
        return None
    try:
        return Prefix(unit)
    except ValueError:
        raise BlockError(f"Unknown unit: '{unit}'") from None


def disk_usage(path: str | os.PathLike = "/") -> DiskUsage:
    """Query the filesystem holding ``path`` (``~`` and variables are expanded)."""
    expanded = os.path.expandvars(os.path.expanduser(os.fspath(path)))
    try:
        st = os.statvfs(expanded)
    except OSError as exc:
        raise BlockError("failed to retrieve statvfs") from exc
    return DiskUsage(
        total=st.f_blocks * st.f_frsize,
        used=(st.f_blocks - st.f_bfree) * st.f_frsize,
        free=st.f_bfree * st.f_bsize,
        available=st.f_bavail * st.f_bsize,
    )


def alert_value(usage: DiskUsage, info_type: InfoType, unit: Prefix | None) -> float:
    """The value compared against the thresholds, in the configured unit."""
    if unit is None:
        return usage.percentage(info_type)
    return usage.value(info_type) * _UNIT_MULTIPLIERS[unit]


def disk_state(
    value: float,
    info_type: InfoType,
    warning: float = DEFAULT_WARNING,
    alert: float = DEFAULT_ALERT,
) -> State:
    """Block state: high usage is bad for USED, low space is bad otherwise."""
    if info_type is InfoType.USED:
        if value >= alert:
            return State.CRITICAL
        if value >= warning:
            return State.WARNING
        return State.IDLE
    if value <= alert:
        return State.CRITICAL
    if value <= warning:
        return State.WARNING
    return State.IDLE