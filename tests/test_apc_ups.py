import asyncio

import pytest

from barblocks.api import BlockError
from barblocks.apc_ups import (
    ApcConnection,
    ApcUpsDevice,
    PropertyMap,
    encode_message,
    info_from_status,
    parse_status_lines,
)
from barblocks.battery import BatteryStatus, DeviceName


def test_encode_message_wire_format():
    assert encode_message(b"status") == b"\x00\x06status"


def test_encode_message_too_long():
    with pytest.raises(BlockError):
        encode_message(b"x" * 2**16)


def test_parse_status_lines_strips_and_skips():
    props = parse_status_lines(["STATUS   : ONLINE \n", "garbage", "BCHARGE  : 100.0 Percent"])
    assert props.get("STATUS") == "ONLINE"
    assert props.get("BCHARGE") == "100.0 Percent"
    assert "garbage" not in props


def test_get_property_parses_value():
    props = PropertyMap({"BCHARGE": "42.5 Percent"})
    assert props.get_property("BCHARGE", "Percent") == 42.5


@pytest.mark.parametrize(
    "props,message",
    [
        ({}, "BCHARGE not in apc ups data"),
        ({"BCHARGE": "42.5"}, "could not split BCHARGE"),
        ({"BCHARGE": "abc Percent"}, "Could not parse data"),
        ({"BCHARGE": "42.5 Watts"}, "Expected unit for BCHARGE are Percent, but got Watts"),
    ],
)
def test_get_property_errors(props, message):
    with pytest.raises(BlockError) as info:
        PropertyMap(props).get_property("BCHARGE", "Percent")
    assert str(info.value) == message


@pytest.mark.parametrize(
    "status,charge,expected",
    [
        ("ONLINE", "100.0", BatteryStatus.FULL),
        ("ONLINE", "50.0", BatteryStatus.CHARGING),
        ("ONBATT", "0.0", BatteryStatus.EMPTY),
        ("ONBATT", "40.0", BatteryStatus.DISCHARGING),
        ("CAL", "40.0", BatteryStatus.UNKNOWN),
    ],
)
def test_info_from_status_status(status, charge, expected):
    info = info_from_status(PropertyMap({"STATUS": status, "BCHARGE": f"{charge} Percent"}))
    assert info.status is expected
    assert info.capacity == float(charge)
    assert info.power is None
    assert info.time_remaining is None


def test_info_from_status_power_and_time():
    props = PropertyMap(
        {
            "STATUS": "ONBATT",
            "BCHARGE": "80.0 Percent",
            "NOMPOWER": "600 Watts",
            "LOADPCT": "25.0 Percent",
            "TIMELEFT": "10.0 Minutes",
        }
    )
    info = info_from_status(props)
    assert info.power == pytest.approx(150.0)
    assert info.time_remaining == pytest.approx(600.0)


@pytest.mark.parametrize(
    "props",
    [
        {"STATUS": "COMMLOST", "BCHARGE": "80.0 Percent"},
        {"BCHARGE": "80.0 Percent"},
        {"STATUS": "ONLINE"},
    ],
)
def test_info_from_status_unusable(props):
    assert info_from_status(PropertyMap(props)) is None


def test_default_address():
    assert ApcUpsDevice().addr == "localhost:3551"
    assert ApcUpsDevice(DeviceName("10.0.0.1:1234")).addr == "10.0.0.1:1234"


async def _serve(lines):
    received = []

    async def handle(reader, writer):
        size = int.from_bytes(await reader.readexactly(2), "big")
        received.append(await reader.readexactly(size))
        for line in lines:
            writer.write(encode_message(line.encode("utf-8")))
        writer.write(b"\x00\x00")
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port, received


@pytest.mark.asyncio
async def test_device_reads_from_server():
    server, port, received = await _serve(
        ["STATUS   : ONLINE\n", "BCHARGE  : 50.0 Percent\n"]
    )
    try:
        device = ApcUpsDevice(DeviceName(f"127.0.0.1:{port}"))
        info = await device.get_info()
    finally:
        server.close()
        await server.wait_closed()
    assert received == [b"status"]
    assert info.status is BatteryStatus.CHARGING
    assert info.capacity == 50.0


@pytest.mark.asyncio
async def test_connection_read_line_roundtrip():
    server, port, _ = await _serve(["HOSTNAME : box"])
    try:
        async with await ApcConnection.connect(f"127.0.0.1:{port}") as conn:
            await conn.write(b"status")
            first = await conn.read_line()
            second = await conn.read_line()
    finally:
        server.close()
        await server.wait_closed()
    assert first == "HOSTNAME : box"
    assert second is None


@pytest.mark.asyncio
async def test_unreachable_server_gives_none():
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    device = ApcUpsDevice(DeviceName(f"127.0.0.1:{port}"))
    assert await device.get_info() is None
    with pytest.raises(BlockError):
        await device.get_status()