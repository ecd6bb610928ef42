"""Pending package updates for apt- and dnf-based systems."""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
from pathlib import Path

from barblocks.api import BlockError, State

APT_CACHE_DIR_NAME = "barblocks-apt"

Pattern = "str | re.Pattern[str]"


def apt_config_text(cache_dir: str | os.PathLike) -> str:
    """Apt configuration that keeps state and cache inside ``cache_dir``."""
    d = os.fspath(cache_dir)
    indent = " " * 13
    return (
        f'Dir::State "{d}";\n\n'
        f'{indent}Dir::State::lists "lists";\n\n'
        f'{indent}Dir::Cache "{d}";\n\n'
        f'{indent}Dir::Cache::srcpkgcache "srcpkgcache.bin";\n\n'
        f'{indent}Dir::Cache::pkgcache "pkgcache.bin";'
    )


def write_apt_config(cache_dir: str | os.PathLike | None = None) -> Path:
    """Create the private apt cache directory and its config file; return the file path."""
    directory = Path(cache_dir) if cache_dir is not None else Path(tempfile.gettempdir()) / APT_CACHE_DIR_NAME
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BlockError("Failed to create temp dir") from exc
    config_file = directory / "apt.conf"
    try:
        config_file.write_text(apt_config_text(directory), encoding="utf-8")
    except OSError as exc:
        raise BlockError("Failed to write to config file") from exc
    return config_file


def apt_update_count(updates: str) -> int:
    """Number of upgradable packages in ``apt list --upgradable`` output."""
    return sum(1 for line in updates.splitlines() if "[upgradable" in line)


def dnf_update_count(updates: str) -> int:
    """Number of non-trivial lines in ``dnf check-update`` output."""
    return sum(1 for line in updates.splitlines() if len(line.encode("utf-8")) > 1)


def has_matching_update(updates: str, pattern: str | re.Pattern[str]) -> bool:
    """Whether any line of the update list matches ``pattern``."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    return any(regex.search(line) for line in updates.splitlines())


def update_state(count: int, warning: bool, critical: bool) -> State:
    """Block state for ``count`` pending updates."""
    if count == 0:
        return State.IDLE
    if critical:
        return State.CRITICAL
    if warning:
        return State.WARNING
    return State.INFO


def _decode(output: bytes, tool: str) -> str:
    try:
        return output.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise BlockError(f"{tool} produced non-UTF8 output") from exc


async def get_apt_updates(config_path: str | os.PathLike) -> str:
    """Refresh the private apt database and list upgradable packages."""
    env = {**os.environ, "APT_CONFIG": os.fspath(config_path)}
    try:
        proc = await asyncio.create_subprocess_exec(
            "apt", "update",
            env=env,
            stdout=asyncio.subprocess.DEVNULL,
            stdin=asyncio.subprocess.DEVNULL,
        )
        await proc.wait()
    except OSError as exc:
        raise BlockError("Failed to run `apt update`") from exc
    try:
        proc = await asyncio.create_subprocess_exec(
            "apt", "list", "--upgradable",
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await proc.communicate()
    except OSError as exc:
        raise BlockError("Problem running apt command") from exc
    return _decode(stdout, "apt")


async def get_dnf_updates() -> str:
    """List available dnf updates."""
    env = {**os.environ, "LC_LANG": "C"}
    try:
        proc = await asyncio.create_subprocess_exec(
            "sh", "-c", "dnf check-update -q --skip-broken",
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await proc.communicate()
    except OSError as exc:
        raise BlockError("Failed to run dnf check-update") from exc
    return _decode(stdout, "dnf")