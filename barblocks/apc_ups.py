"""Battery information from an apcupsd network information server."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Iterable

from barblocks.api import BlockError
from barblocks.battery import BatteryInfo, BatteryStatus, DeviceName

log = logging.getLogger(__name__)

DEFAULT_ADDRESS = "localhost:3551"
DEFAULT_INTERVAL = 10.0

_MAX_MESSAGE_LEN = 2**16


class PropertyMap(dict):
    """Key/value pairs reported by apcupsd, both sides stripped of whitespace."""

    def get_property(self, name: str, unit: str) -> float:
        """Parse a ``"<value> <unit>"`` property, insisting on the given unit."""
        stat = self.get(name)
        if stat is None:
            raise BlockError(f"{name} not in apc ups data")
        value, sep, actual_unit = stat.partition(" ")
        if not sep:
            raise BlockError(f"could not split {name}")
        if actual_unit != unit:
            raise BlockError(
                f"Expected unit for {name} are {unit}, but got {actual_unit}"
            )
        if "_" in value:
            raise BlockError("Could not parse data")
        try:
            return float(value)
        except ValueError:
            raise BlockError("Could not parse data") from None


def encode_message(msg: bytes) -> bytes:
    """Frame a message with its big-endian 16-bit length."""
    if len(msg) >= _MAX_MESSAGE_LEN:
        raise BlockError("msg is too long, it must be less than 2^16 characters long")
    return len(msg).to_bytes(2, "big") + msg


def parse_status_lines(lines: Iterable[str]) -> PropertyMap:
    """Collect ``KEY : value`` lines; lines without a colon are ignored."""
    props = PropertyMap()
    for line in lines:
        key, sep, value = line.partition(":")
        if sep:
            props[key.strip()] = value.strip()
    return props


def info_from_status(props: PropertyMap) -> BatteryInfo | None:
    """Turn an apcupsd status report into a battery snapshot, if it is usable."""
    status_str = props.get("STATUS", "COMMLOST")
    try:
        # BCHARGE may be missing for a few seconds after apcupsd starts.
        capacity = props.get_property("BCHARGE", "Percent")
    except BlockError:
        return None
    if status_str == "COMMLOST":
        return None

    if status_str == "ONBATT":
        status = BatteryStatus.EMPTY if capacity == 0.0 else BatteryStatus.DISCHARGING
    elif status_str == "ONLINE":
        status = BatteryStatus.FULL if capacity == 100.0 else BatteryStatus.CHARGING
    else:
        status = BatteryStatus.UNKNOWN

    power = None
    try:
        nominal_power = props.get_property("NOMPOWER", "Watts")
        load_percent = props.get_property("LOADPCT", "Percent")
        power = nominal_power * load_percent / 100.0
    except BlockError:
        pass

    time_remaining = None
    try:
        time_remaining = props.get_property("TIMELEFT", "Minutes") * 60.0
    except BlockError:
        pass

    return BatteryInfo(
        status=status, capacity=capacity, power=power, time_remaining=time_remaining
    )


def _split_address(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise BlockError("Failed to connect to socket")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


class ApcConnection:
    """A framed connection to apcupsd."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self._reader = reader
        self._writer = writer

    @classmethod
    async def connect(cls, addr: str) -> "ApcConnection":
        """Open a connection to ``host:port``."""
        host, port = _split_address(addr)
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as exc:
            raise BlockError("Failed to connect to socket") from exc
        return cls(reader, writer)

    async def write(self, msg: bytes) -> None:
        """Send one framed message."""
        frame = encode_message(msg)
        try:
            self._writer.write(frame)
            await self._writer.drain()
        except OSError as exc:
            raise BlockError("Could not write message to socket") from exc

    async def read_line(self) -> str | None:
        """Read one framed line; None marks the end of the response."""
        try:
            header = await self._reader.readexactly(2)
        except (asyncio.IncompleteReadError, OSError) as exc:
            raise BlockError("Could not read response length from socket") from exc
        size = int.from_bytes(header, "big")
        if size == 0:
            return None
        try:
            data = await self._reader.readexactly(size)
        except (asyncio.IncompleteReadError, OSError) as exc:
            raise BlockError("Could not read from socket") from exc
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BlockError("invalid UTF8") from exc

    async def close(self) -> None:
        """Close the connection."""
        self._writer.close()
        with contextlib.suppress(OSError):
            await self._writer.wait_closed()

    async def __aenter__(self) -> "ApcConnection":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class ApcUpsDevice:
    """A UPS monitored through apcupsd."""

    def __init__(self, dev_name: DeviceName | None = None, interval: float = DEFAULT_INTERVAL):
        name = dev_name if dev_name is not None else DeviceName()
        self.addr = name.exact() or DEFAULT_ADDRESS
        self.interval = interval
        self._next_tick: float | None = None

    async def get_status(self) -> PropertyMap:
        """Ask apcupsd for its status report."""
        async with await ApcConnection.connect(self.addr) as conn:
            await conn.write(b"status")
            lines = []
            while (line := await conn.read_line()) is not None:
                lines.append(line)
        return parse_status_lines(lines)

    async def get_info(self) -> BatteryInfo | None:
        """Current UPS battery state, or None if the UPS cannot be read."""
        try:
            props = await self.get_status()
        except BlockError as err:
            log.debug("%s", err)
            props = PropertyMap()
        return info_from_status(props)

    async def wait_for_change(self) -> None:
        """Wait for the next polling tick; the first tick is immediate."""
        loop = asyncio.get_running_loop()
        now = loop.time()
        if self._next_tick is None:
            self._next_tick = now
        delay = self._next_tick - now
        if delay > 0:
            await asyncio.sleep(delay)
        self._next_tick += self.interval