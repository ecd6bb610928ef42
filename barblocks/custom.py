"""Blocks driven by the output of a shell command."""

from __future__ import annotations

import asyncio
import itertools
import json
import os
from dataclasses import dataclass
from typing import Iterator, Sequence

from barblocks.api import BlockError, State

DEFAULT_FORMAT = "{ $icon|} $text "
DEFAULT_SHORT_FORMAT = "{ $icon|} $short_text |"
DEFAULT_INTERVAL = 10.0
FALLBACK_SHELL = "sh"


@dataclass(frozen=True)
class CustomInput:
    """The JSON object a command may print to describe the block."""

    icon: str = ""
    state: State = State.IDLE
    text: str = ""
    short_text: str | None = None


def parse_json_input(text: str) -> CustomInput:
    """Parse command output in JSON mode; missing fields take their defaults."""
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise BlockError("Invalid JSON") from exc
    if not isinstance(data, dict):
        raise BlockError("Invalid JSON")

    icon = data.get("icon", "")
    body = data.get("text", "")
    short_text = data.get("short_text")
    raw_state = data.get("state", State.IDLE.value)
    if not isinstance(icon, str) or not isinstance(body, str):
        raise BlockError("Invalid JSON")
    if short_text is not None and not isinstance(short_text, str):
        raise BlockError("Invalid JSON")
    if not isinstance(raw_state, str):
        raise BlockError("Invalid JSON")
    try:
        state = State(raw_state)
    except ValueError:
        raise BlockError("Invalid JSON") from None
    return CustomInput(icon=icon, state=state, text=body, short_text=short_text)


def choose_shell(shell: str | None = None) -> str:
    """The configured shell, else ``$SHELL``, else ``sh``."""
    if shell is not None:
        return shell
    env_shell = os.environ.get("SHELL")
    return env_shell if env_shell is not None else FALLBACK_SHELL


def command_cycle(command: str | None, cycle: Sequence[str] | None) -> Iterator[str]:
    """Endless iterator over the commands to run, advanced on each left click."""
    if cycle is not None:
        commands = list(cycle)
    elif command is not None:
        commands = [command]
    else:
        raise BlockError("either 'command' or 'cycle' must be specified")
    if not commands:
        raise BlockError("'cycle' must contain at least one command")
    return itertools.cycle(commands)


async def run_command(shell: str, command: str) -> str:
    """Run ``command`` through ``shell -c`` and return its trimmed standard output."""
    try:
        proc = await asyncio.create_subprocess_exec(
            shell, "-c", command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await proc.communicate()
    except OSError as exc:
        raise BlockError("failed to run command") from exc
    try:
        return stdout.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise BlockError("the output of command is invalid UTF-8") from exc


def render(stdout: str, json_mode: bool) -> tuple[dict[str, str], State | None, bool]:
    """Turn command output into ``(values, state, text_empty)``.

    ``values["icon"]`` holds an icon name still to be resolved. ``state`` is None
    when the output does not set one.
    """
    if not json_mode:
        return {"text": stdout}, None, stdout == ""
    parsed = parse_json_input(stdout)
    values = {"text": parsed.text}
    if parsed.icon:
        values["icon"] = parsed.icon
    if parsed.short_text is not None:
        values["short_text"] = parsed.short_text
    return values, parsed.state, parsed.text == ""