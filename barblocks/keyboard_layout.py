"""Keyboard layout and variant reporting."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Mapping

from barblocks.api import BlockError

DEFAULT_FORMAT = " $layout "
DEFAULT_INTERVAL = 60.0
MISSING_VARIANT = "N/A"

_ASCII_WHITESPACE = re.compile(r"[ \t\n\r\x0c]+")


@dataclass(frozen=True)
class LayoutInfo:
    """A keyboard layout name with an optional variant."""

    layout: str
    variant: str | None = None


def parse_layout(layout: str) -> LayoutInfo:
    """Split ``"Name (Variant)"`` into layout and variant; no parenthesis means no variant."""
    name, sep, rest = layout.partition("(")
    if not sep:
        return LayoutInfo(layout=layout, variant=None)
    return LayoutInfo(layout=name.rstrip(), variant=rest.rstrip(")"))


def parse_setxkbmap(output: str) -> LayoutInfo:
    """Extract the layout from ``setxkbmap -query`` output."""
    line = next((l for l in output.splitlines() if l.startswith("layout")), None)
    if line is None:
        raise BlockError("Could not find the layout entry from setxkbmap")
    fields = [f for f in _ASCII_WHITESPACE.split(line) if f]
    if not fields:
        raise BlockError("Could not read the layout entry from setxkbmap.")
    return LayoutInfo(layout=fields[-1], variant=None)


def apply_mapping(info: LayoutInfo, mappings: Mapping[str, str] | None) -> LayoutInfo:
    """Fill in a missing variant and replace the layout by its mapped short name, if any."""
    variant = info.variant if info.variant is not None else MISSING_VARIANT
    layout = info.layout
    if mappings is not None:
        layout = mappings.get(f"{layout} ({variant})", layout)
    return LayoutInfo(layout=layout, variant=variant)


async def query_setxkbmap() -> LayoutInfo:
    """Ask ``setxkbmap`` for the current layout."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "setxkbmap", "-query",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await proc.communicate()
    except OSError as exc:
        raise BlockError("Failed to execute setxkbmap") from exc
    try:
        text = stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BlockError("setxkbmap produced a non-UTF8 output") from exc
    return parse_setxkbmap(text)