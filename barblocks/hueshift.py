"""Display colour temperature control through external hue shifter programs."""

from __future__ import annotations

import enum
import shutil

from barblocks.api import BlockError, MouseButton

DEFAULT_STEP = 100
DEFAULT_MAX_TEMP = 10_000
DEFAULT_MIN_TEMP = 1_000
DEFAULT_CLICK_TEMP = 6_500
DEFAULT_CURRENT_TEMP = 6_500
RESET_TEMP = 6_500

TEMP_HARD_MAX = 10_000
TEMP_HARD_MIN = 1_000
STEP_LIMIT = 500

UPDATE = "update"
RESET = "reset"


class HueShifter(enum.Enum):
    """Supported hue shifter programs."""

    REDSHIFT = "redshift"
    SCT = "sct"
    GAMMASTEP = "gammastep"
    WLSUNSET = "wlsunset"
    WL_GAMMARELAY = "wl_gammarelay"
    WL_GAMMARELAY_RS = "wl_gammarelay_rs"


_DETECTION_ORDER = (
    ("wl-gammarelay-rs", HueShifter.WL_GAMMARELAY_RS),
    ("wl-gammarelay", HueShifter.WL_GAMMARELAY),
    ("redshift", HueShifter.REDSHIFT),
    ("sct", HueShifter.SCT),
    ("gammastep", HueShifter.GAMMASTEP),
    ("wlsunset", HueShifter.WLSUNSET),
)


def clamp_limits(
    step: int = DEFAULT_STEP,
    max_temp: int = DEFAULT_MAX_TEMP,
    min_temp: int = DEFAULT_MIN_TEMP,
) -> tuple[int, int, int]:
    """Apply the hard limits; returns ``(step, max_temp, min_temp)``."""
    step = max(step, STEP_LIMIT)
    max_temp = min(max_temp, TEMP_HARD_MAX)
    if TEMP_HARD_MIN > max_temp:
        raise BlockError(f"max_temp must be at least {TEMP_HARD_MIN}")
    min_temp = min(max(min_temp, TEMP_HARD_MIN), max_temp)
    return step, max_temp, min_temp


def detect_hue_shifter() -> HueShifter:
    """The first installed hue shifter, in order of preference."""
    for command, shifter in _DETECTION_ORDER:
        if shutil.which(command) is not None:
            return shifter
    raise BlockError("Could not detect driver program")


def _shell(command: str) -> list[str]:
    return ["sh", "-c", command]


def set_command(shifter: HueShifter, temp: int) -> list[str]:
    """Command line that sets the colour temperature to ``temp``."""
    if shifter is HueShifter.REDSHIFT:
        return ["redshift", "-O", str(temp), "-P"]
    if shifter is HueShifter.SCT:
        return _shell(f"sct {temp} >/dev/null 2>&1")
    if shifter is HueShifter.GAMMASTEP:
        return _shell(f"killall gammastep; gammastep -O {temp} -P &")
    if shifter is HueShifter.WLSUNSET:
        # wlsunset has no one-shot mode and rejects equal day and night temperatures.
        return _shell(f"killall wlsunset; wlsunset -T {temp + 1} -t {temp} &")
    raise ValueError(f"{shifter.value} is controlled over D-Bus, not by a command")


def reset_command(shifter: HueShifter) -> list[str]:
    """Command line that resets the colour temperature."""
    if shifter is HueShifter.REDSHIFT:
        return ["redshift", "-x"]
    if shifter is HueShifter.SCT:
        return ["sct"]
    if shifter is HueShifter.GAMMASTEP:
        return ["gammastep", "-x"]
    if shifter is HueShifter.WLSUNSET:
        return ["killall", "wlsunset"]
    raise ValueError(f"{shifter.value} is controlled over D-Bus, not by a command")


def apply_click(
    current: int,
    button: MouseButton,
    click_temp: int = DEFAULT_CLICK_TEMP,
    step: int = STEP_LIMIT,
    min_temp: int = DEFAULT_MIN_TEMP,
    max_temp: int = DEFAULT_MAX_TEMP,
) -> tuple[int, str | None]:
    """New temperature after a click and the driver action: UPDATE, RESET or None."""
    if button is MouseButton.LEFT:
        return click_temp, UPDATE
    if button is MouseButton.RIGHT:
        if max_temp > RESET_TEMP:
            return RESET_TEMP, RESET
        return max_temp, UPDATE
    if button is MouseButton.WHEEL_UP:
        return min(current + step, max_temp), UPDATE
    if button is MouseButton.WHEEL_DOWN:
        return max(max(current - step, 0), min_temp), UPDATE
    return current, None