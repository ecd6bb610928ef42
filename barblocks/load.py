"""System load average."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from barblocks.api import BlockError, State

LOADAVG_PATH = "/proc/loadavg"
CPUINFO_PATH = "/proc/cpuinfo"

DEFAULT_INFO = 0.3
DEFAULT_WARNING = 0.6
DEFAULT_CRITICAL = 0.9


@dataclass(frozen=True)
class LoadAverage:
    """Load averages over one, five and fifteen minutes."""

    m1: float
    m5: float
    m15: float


def count_logical_cores(cpuinfo: str) -> int:
    """Number of logical processors listed in ``/proc/cpuinfo`` content."""
    return sum(1 for line in cpuinfo.splitlines() if line.startswith("processor"))


def parse_loadavg(text: str) -> LoadAverage:
    """Parse the first three fields of ``/proc/loadavg`` content."""
    fields = text.split(" ")
    if len(fields) < 3:
        raise BlockError("bad /proc/loadavg file")
    try:
        m1, m5, m15 = (float(field) for field in fields[:3])
    except ValueError:
        raise BlockError("bad /proc/loadavg file") from None
    return LoadAverage(m1, m5, m15)


def load_state(
    m1: float,
    cores: int,
    info: float = DEFAULT_INFO,
    warning: float = DEFAULT_WARNING,
    critical: float = DEFAULT_CRITICAL,
) -> State:
    """Block state for the one-minute load spread over ``cores`` processors."""
    if cores == 0:
        per_core = math.nan if m1 == 0 else math.copysign(math.inf, m1)
    else:
        per_core = m1 / cores
    if per_core > critical:
        return State.CRITICAL
    if per_core > warning:
        return State.WARNING
    if per_core > info:
        return State.INFO
    return State.IDLE


def read_logical_cores(cpuinfo_path: str | os.PathLike = CPUINFO_PATH) -> int:
    """Count logical processors from the cpuinfo file."""
    try:
        with open(cpuinfo_path, encoding="utf-8") as fh:
            return count_logical_cores(fh.read())
    except OSError as exc:
        raise BlockError("Your system doesn't support /proc/cpuinfo") from exc


def read_load(loadavg_path: str | os.PathLike = LOADAVG_PATH) -> LoadAverage:
    """Read and parse the load average file."""
    try:
        with open(loadavg_path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise BlockError(
            "Your system does not support reading the load average from /proc/loadavg"
        ) from exc
    return parse_loadavg(text)