import math

import pytest

from barblocks.api import BlockError
from barblocks.battery import BatteryStatus, DeviceName
from barblocks.battery_sysfs import (
    CapacityLevel,
    SysfsBattery,
    SysfsReadings,
    compute_info,
    device_available,
    parse_capacity_level,
)


def make_supply(root, name, **props):
    path = root / name
    path.mkdir()
    for key, value in props.items():
        (path / key).write_text(f"{value}\n")
    return path


@pytest.mark.parametrize(
    "text, level, pct",
    [
        ("Full", CapacityLevel.FULL, 100.0),
        ("High", CapacityLevel.HIGH, 75.0),
        ("Normal", CapacityLevel.NORMAL, 50.0),
        ("Low", CapacityLevel.LOW, 25.0),
        ("Critical", CapacityLevel.CRITICAL, 5.0),
    ],
)
def test_capacity_levels(text, level, pct):
    parsed = parse_capacity_level(text)
    assert parsed is level
    assert parsed.percentage() == pct


def test_unknown_capacity_level():
    assert parse_capacity_level("bogus") is CapacityLevel.UNKNOWN
    assert CapacityLevel.UNKNOWN.percentage() is None


def test_capacity_missing_raises():
    with pytest.raises(BlockError, match="Failed to get capacity"):
        compute_info(SysfsReadings())


def test_capacity_from_charge():
    info = compute_info(SysfsReadings(charge_now=3e6, charge_full=3e6))
    assert info.capacity == pytest.approx(100.0)
    assert info.status is BatteryStatus.UNKNOWN


def test_explicit_capacity_wins():
    info = compute_info(SysfsReadings(capacity=42.0, charge_now=1e6, charge_full=4e6))
    assert info.capacity == 42.0


def test_capacity_from_level():
    info = compute_info(SysfsReadings(capacity_level=CapacityLevel.HIGH))
    assert info.capacity == 75.0


def test_power_from_current_and_voltage_matches_power_now():
    derived = compute_info(SysfsReadings(capacity=50.0, current_now=2e6, voltage_now=3e6))
    direct = compute_info(SysfsReadings(capacity=50.0, power_now=derived.power / 1e-6))
    assert derived.power == pytest.approx(direct.power)


def test_discharging_time_from_energy():
    info = compute_info(
        SysfsReadings(
            status=BatteryStatus.DISCHARGING, capacity=50.0, energy_now=5e6, power_now=5e6
        )
    )
    assert info.time_remaining == pytest.approx(3600.0)


def test_charging_time_from_energy():
    info = compute_info(
        SysfsReadings(
            status=BatteryStatus.CHARGING,
            capacity=50.0,
            energy_now=1e6,
            energy_full=2e6,
            power_now=1e6,
        )
    )
    assert info.time_remaining == pytest.approx(3600.0)


def test_reported_time_wins():
    info = compute_info(
        SysfsReadings(
            status=BatteryStatus.CHARGING,
            capacity=50.0,
            energy_now=1e6,
            energy_full=2e6,
            power_now=1e6,
            time_to_full=120.0,
        )
    )
    assert info.time_remaining == 120.0


def test_no_time_when_full():
    info = compute_info(
        SysfsReadings(status=BatteryStatus.FULL, capacity=100.0, energy_now=1e6, power_now=1e6)
    )
    assert info.time_remaining is None


def test_zero_power_gives_infinite_time():
    info = compute_info(
        SysfsReadings(
            status=BatteryStatus.DISCHARGING, capacity=50.0, energy_now=1e6, power_now=0.0
        )
    )
    assert info.time_remaining == math.inf


def test_device_available(tmp_path):
    assert device_available(make_supply(tmp_path, "a", present=1))
    assert device_available(make_supply(tmp_path, "b", scope="Device"))
    assert not device_available(make_supply(tmp_path, "c", present=0))
    assert not device_available(make_supply(tmp_path, "d"))


def test_prefers_system_battery(tmp_path):
    make_supply(tmp_path, "AC", type="Mains", online=1)
    make_supply(tmp_path, "BAT0", type="Battery", present=1, capacity=80)
    make_supply(tmp_path, "hidpp_battery_0", type="Battery", scope="Device", capacity=30)
    battery = SysfsBattery(root=tmp_path)
    assert battery.device_path() == tmp_path / "BAT0"


def test_regex_selects_device(tmp_path):
    make_supply(tmp_path, "BAT0", type="Battery", present=1)
    make_supply(tmp_path, "hidpp_battery_0", type="Battery", scope="Device")
    battery = SysfsBattery(DeviceName("hidpp"), root=tmp_path)
    assert battery.device_path() == tmp_path / "hidpp_battery_0"


def test_cached_path_replaced_when_unavailable(tmp_path):
    bat = make_supply(tmp_path, "BAT0", type="Battery", present=1)
    make_supply(tmp_path, "other", type="Battery", present=1)
    battery = SysfsBattery(root=tmp_path)
    assert battery.device_path() == bat
    (bat / "present").write_text("0\n")
    assert battery.device_path() == tmp_path / "other"


def test_get_info_reads_files(tmp_path):
    make_supply(
        tmp_path, "BAT1", type="Battery", present=1, status="Discharging", capacity=64
    )
    info = SysfsBattery(root=tmp_path).get_info()
    assert info.status is BatteryStatus.DISCHARGING
    assert info.capacity == 64.0
    assert info.power is None


def test_get_info_none_without_battery(tmp_path):
    make_supply(tmp_path, "AC", type="Mains")
    assert SysfsBattery(root=tmp_path).get_info() is None


def test_missing_root_raises(tmp_path):
    with pytest.raises(BlockError):
        SysfsBattery(root=tmp_path / "missing").device_path()