"""CPU utilization, frequency and turbo boost statistics."""

from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from typing import Iterable

from barblocks.api import BlockError, State

CPU_BOOST_PATH = "/sys/devices/system/cpu/cpufreq/boost"
CPU_NO_TURBO_PATH = "/sys/devices/system/cpu/intel_pstate/no_turbo"
PROC_STAT_PATH = "/proc/stat"
CPUINFO_PATH = "/proc/cpuinfo"

BOXCHARS = "▁▂▃▄▅▆▇█"

_UNSIGNED = re.compile(r"\+?[0-9]+")
_LEADING_NON_DIGITS = re.compile(r"^[^0-9]*")
_LEADING_NON_SPACE = re.compile(r"^[^ \t\n\r\x0c]*")


@dataclass(frozen=True)
class CpuTime:
    """Accumulated idle and busy jiffies."""

    idle: int
    non_idle: int

    def utilization(self, old: "CpuTime") -> float:
        """Fraction of time spent busy since ``old``, clamped to [0, 1]."""
        elapsed = float(self.idle + self.non_idle) - float(old.idle + old.non_idle)
        busy = float(self.non_idle - old.non_idle)
        if elapsed == 0:
            if busy == 0:
                return math.nan
            return 1.0 if busy > 0 else 0.0
        return min(max(busy / elapsed, 0.0), 1.0)


def parse_cpu_time(text: str) -> CpuTime | None:
    """Parse the numeric columns of a ``/proc/stat`` cpu line; None if malformed."""
    fields = text.split()
    if len(fields) < 7:
        return None
    values = []
    for field in fields[:7]:
        if not _UNSIGNED.fullmatch(field):
            return None
        values.append(int(field))
    user, nice, system, idle, iowait, irq, softirq = values
    return CpuTime(idle=idle + iowait, non_idle=user + nice + system + irq + softirq)


def _parse_or_fail(data: str) -> CpuTime:
    cpu_time = parse_cpu_time(data)
    if cpu_time is None:
        raise BlockError("failed to parse /proc/stat")
    return cpu_time


def parse_proc_stat(text: str) -> tuple[CpuTime, list[CpuTime]]:
    """Return the total cpu time and the per-core times from ``/proc/stat`` content."""
    total = None
    cores = []
    for line in text.splitlines():
        data = _LEADING_NON_SPACE.sub("", line, count=1)
        if line.startswith("cpu "):
            total = _parse_or_fail(data)
        elif line.startswith("cpu"):
            cores.append(_parse_or_fail(data))
    if total is None:
        raise BlockError("failed to parse /proc/stat")
    return total, cores


def parse_frequencies(text: str) -> list[float]:
    """Per-core frequencies in Hz from ``/proc/cpuinfo`` content."""
    freqs = []
    for line in text.splitlines():
        if not line.startswith("cpu MHz"):
            continue
        number = _LEADING_NON_DIGITS.sub("", line.rstrip(), count=1)
        try:
            freqs.append(float(number) * 1e6)
        except ValueError:
            raise BlockError("failed to parse /proc/cpuinfo") from None
    return freqs


def barchart(utilizations: Iterable[float]) -> str:
    """One box character per core, its height following the core's utilization."""
    chars = []
    for utilization in utilizations:
        scaled = 7.5 * utilization
        index = 0 if math.isnan(scaled) or scaled < 0 else min(int(scaled), len(BOXCHARS) - 1)
        chars.append(BOXCHARS[index])
    return "".join(chars)


def cpu_state(utilization: float) -> State:
    """Block state for an average utilization in [0, 1]."""
    if utilization > 0.9:
        return State.CRITICAL
    if utilization > 0.6:
        return State.WARNING
    if utilization > 0.3:
        return State.INFO
    return State.IDLE


def _read_text(path: str | os.PathLike) -> str | None:
    try:
        with open(path, encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError):
        return None


def boost_status(
    boost_path: str | os.PathLike = CPU_BOOST_PATH,
    no_turbo_path: str | os.PathLike = CPU_NO_TURBO_PATH,
) -> bool | None:
    """Turbo boost state from the cpufreq or intel_pstate interface, if either exists."""
    boost = _read_text(boost_path)
    if boost is not None:
        return boost.startswith("1")
    no_turbo = _read_text(no_turbo_path)
    if no_turbo is not None:
        return no_turbo.startswith("0")
    return None


def read_proc_stat(path: str | os.PathLike = PROC_STAT_PATH) -> tuple[CpuTime, list[CpuTime]]:
    """Read and parse ``/proc/stat``."""
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise BlockError("failed to read /proc/stat") from exc
    return parse_proc_stat(text)


def read_frequencies(path: str | os.PathLike = CPUINFO_PATH) -> list[float]:
    """Read per-core frequencies (Hz) from ``/proc/cpuinfo``."""
    try:
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
    except OSError as exc:
        raise BlockError("failed to read /proc/cpuinfo") from exc
    return parse_frequencies(text)