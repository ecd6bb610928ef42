"""Brightness of a backlight device read from sysfs."""

from __future__ import annotations

import math
import os
import re
from pathlib import Path

from barblocks.api import BlockError

DEVICES_PATH = "/sys/class/backlight"
FILE_MAX_BRIGHTNESS = "max_brightness"
FILE_BRIGHTNESS = "actual_brightness"
# amdgpu reports actual_brightness on a different scale than [0, max_brightness].
FILE_BRIGHTNESS_AMD = "brightness"
AMD_DEVICE_NAME = "amdgpu_bl0"

ROOT_SCALING_MIN = 0.1
ROOT_SCALING_MAX = 10.0

DEFAULT_STEP_WIDTH = 5
DEFAULT_MINIMUM = 5
DEFAULT_MAXIMUM = 100

BACKLIGHT_ICONS = (
    "backlight_empty",
    "backlight_1",
    "backlight_2",
    "backlight_3",
    "backlight_4",
    "backlight_5",
    "backlight_6",
    "backlight_7",
    "backlight_8",
    "backlight_9",
    "backlight_10",
    "backlight_11",
    "backlight_12",
    "backlight_13",
    "backlight_full",
)

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


def icon_for_brightness(brightness: int, invert: bool = False) -> str:
    """Icon name for a brightness percentage in [0, 100]."""
    if not 0 <= brightness <= 100:
        raise ValueError(f"brightness {brightness} is not in [0, 100]")
    index = brightness * len(BACKLIGHT_ICONS) // 101
    if invert:
        index = len(BACKLIGHT_ICONS) - index - 1
    return BACKLIGHT_ICONS[index]


def clamp_root_scaling(value: float) -> float:
    """Limit the root scaling exponent to its valid range."""
    if math.isnan(value):
        return value
    return min(max(value, ROOT_SCALING_MIN), ROOT_SCALING_MAX)


def _round_half_away(x: float) -> float:
    return math.floor(x + 0.5) if x >= 0 else math.ceil(x - 0.5)


def _ratio(raw: float, full: float) -> float:
    if full == 0:
        return math.nan if raw == 0 else math.inf
    return raw / full


def raw_to_percent(raw: int, max_brightness: int, root_scaling: float = 1.0) -> int:
    """Convert a raw brightness reading to a percentage."""
    ratio = _ratio(float(raw), float(max_brightness)) ** (1.0 / root_scaling)
    scaled = _round_half_away(ratio * 100.0)
    if math.isnan(scaled):
        percent = 0
    elif math.isinf(scaled):
        raise BlockError("Brightness is not in [0, 100]")
    else:
        percent = int(scaled)
    if not 0 <= percent <= 100:
        raise BlockError("Brightness is not in [0, 100]")
    return percent


def percent_to_raw(value: int, max_brightness: int, root_scaling: float = 1.0) -> int:
    """Convert a percentage to a raw brightness value, never below 1."""
    value = min(max(value, 0), 100)
    ratio = (value / 100.0) ** root_scaling
    scaled = _round_half_away(ratio * float(max_brightness))
    if math.isnan(scaled) or scaled < 0:
        raw = 0
    elif scaled > _U32_MAX:
        raw = _U32_MAX
    else:
        raw = int(scaled)
    return max(1, raw)


def step_brightness(
    brightness: int,
    step: int = DEFAULT_STEP_WIDTH,
    minimum: int = DEFAULT_MINIMUM,
    maximum: int = DEFAULT_MAXIMUM,
    up: bool = True,
) -> int:
    """Brightness after one scroll step, kept within [minimum, maximum]."""
    if minimum > maximum:
        raise ValueError("minimum must not exceed maximum")
    target = brightness + step if up else max(brightness - step, 0)
    return min(max(target, minimum), maximum)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8").strip()


def read_brightness_raw(path: str | os.PathLike) -> int:
    """Read a raw brightness value, retrying once if the first read fails."""
    p = Path(path)
    try:
        text = _read_text(p)
    except (OSError, UnicodeDecodeError):
        # Some devices (e.g. ddcci) fail the first read with a bad message error.
        try:
            text = _read_text(p)
        except (OSError, UnicodeDecodeError) as exc:
            raise BlockError("Failed to read brightness file") from exc
    if not _UNSIGNED.fullmatch(text) or int(text) > _U64_MAX:
        raise BlockError("Failed to read value from brightness file")
    return int(text)


class BacklightDevice:
    """A backlight device whose brightness can be queried as a percentage."""

    def __init__(self, device_path: str | os.PathLike, root_scaling: float = 1.0):
        path = Path(device_path)
        if not path.name:
            raise BlockError("Malformed device path")
        self.device_name = path.name
        file_name = FILE_BRIGHTNESS_AMD if path.name == AMD_DEVICE_NAME else FILE_BRIGHTNESS
        self.brightness_file = path / file_name
        self.max_brightness = read_brightness_raw(path / FILE_MAX_BRIGHTNESS)
        self.root_scaling = clamp_root_scaling(root_scaling)

    @classmethod
    def default(
        cls, root_scaling: float = 1.0, devices_path: str | os.PathLike = DEVICES_PATH
    ) -> "BacklightDevice":
        """The first device found in the backlight directory."""
        try:
            entries = sorted(Path(devices_path).iterdir(), key=lambda p: p.name)
        except OSError as exc:
            raise BlockError("Failed to read backlight device directory") from exc
        if not entries:
            raise BlockError("No backlight devices found")
        return cls(entries[0], root_scaling)

    @classmethod
    def from_device(
        cls,
        device: str,
        root_scaling: float = 1.0,
        devices_path: str | os.PathLike = DEVICES_PATH,
    ) -> "BacklightDevice":
        """The named device in the backlight directory."""
        return cls(Path(devices_path) / device, root_scaling)

    def brightness(self) -> int:
        """Current brightness as a percentage."""
        raw = read_brightness_raw(self.brightness_file)
        return raw_to_percent(raw, self.max_brightness, self.root_scaling)