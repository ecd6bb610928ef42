# barblocks

Building blocks for a status bar on Linux. Each module gathers one kind of
system information and turns it into plain values and a `State`
(`IDLE`, `INFO`, `GOOD`, `WARNING`, `CRITICAL`) that a bar can display.
The package has no dependencies outside the standard library.

## Modules

| Module | What it provides |
|--------|------------------|
| `barblocks.api` | `State`, `MouseButton`, `ClickEvent`, `UpdateRequest`, `Request`, `RequestCmd`, `BlockError` and `CommonApi` |
| `barblocks.load` | `read_load`, `parse_loadavg`, `count_logical_cores`, `load_state` |
| `barblocks.cpu` | `read_proc_stat`, `CpuTime.utilization`, `read_frequencies`, `barchart`, `boost_status`, `cpu_state` |
| `barblocks.disk_space` | `disk_usage` (via `statvfs`), `DiskUsage`, `InfoType`, `parse_alert_unit`, `alert_value`, `disk_state` |
| `barblocks.battery` | `BatteryInfo`, `BatteryStatus`, `DeviceName`, `Thresholds`, `apply_thresholds`, `battery_state`, `battery_values`, `format_time` |
| `barblocks.battery_sysfs` | `SysfsBattery` reading `/sys/class/power_supply`, and `compute_info` for deriving capacity, power and time remaining |
| `barblocks.apc_ups` | `ApcUpsDevice` talking to an apcupsd server (default `localhost:3551`), `PropertyMap`, `info_from_status` |
| `barblocks.updates` | `get_apt_updates` (with a private apt cache from `write_apt_config`), `get_dnf_updates`, update counts and `update_state` |
| `barblocks.github` | `get_stats` counting unread notifications per reason, and `github_state` |
| `barblocks.docker` | `fetch_status` over the Docker Unix socket, returning a `DockerStatus` |
| `barblocks.maildir` | `count_mail`, `total_mail` for `new`, `cur` or all mail, and `mail_state` |
| `barblocks.keyboard_layout` | `query_setxkbmap`, `parse_layout`, `apply_mapping` |
| `barblocks.custom` | `run_command` through a shell, `choose_shell`, `command_cycle`, `render` of plain text or JSON output |
| `barblocks.backlight` | `BacklightDevice` reading `/sys/class/backlight`, percentage conversion with root scaling, `icon_for_brightness`, `step_brightness` |
| `barblocks.hueshift` | `HueShifter`, `detect_hue_shifter`, command lines from `set_command` / `reset_command`, `apply_click`, `clamp_limits` |

Errors are raised as `barblocks.api.BlockError`.

## Examples

```python
from barblocks.load import read_load, read_logical_cores, load_state

avg = read_load()                      # reads /proc/loadavg
state = load_state(avg.m1, read_logical_cores())
```

```python
from barblocks.cpu import read_proc_stat, barchart

old_total, old_cores = read_proc_stat()
# ... some time later ...
total, cores = read_proc_stat()
print(barchart(new.utilization(prev) for new, prev in zip(cores, old_cores)))
```

```python
from barblocks.battery import apply_thresholds, battery_state, battery_values
from barblocks.battery_sysfs import SysfsBattery

info = SysfsBattery().get_info()       # None when no battery is present
if info is not None:
    info = apply_thresholds(info)
    print(battery_values(info), battery_state(info))
```

Functions that run programs or use the network (`get_apt_updates`,
`get_dnf_updates`, `get_stats`, `fetch_status`, `query_setxkbmap`,
`run_command`, `ApcUpsDevice.get_info`) are coroutines.

## CommonApi

`CommonApi` is the channel between a running block and a bar. It puts
`Request` objects on `request_queue` (`set_widget`, `hide`, `set_error`),
takes events from `event_queue` (`event`, `wait_for_update_request`; a `None`
in the queue ends the stream), looks up icons by name in `icons`
(`get_icon`), and `recoverable(f)` retries a coroutine function until it
succeeds, reporting each `BlockError` and then waiting `error_interval`
seconds or for an update request.

## Documentation generator

The `barblocks-manpage` command reads every file in `<src dir>/blocks`,
takes each file's leading `//!` comment lines, demotes their headings by two
levels and writes one Markdown section per file, sorted by name:

```sh
barblocks-manpage ../src ../man/blocks.md
```

## What this package does not do

- It has no bar process of its own: nothing here runs the blocks in a loop,
  reads a configuration file, renders format strings or writes a status line.
  A caller drives the functions above and consumes `CommonApi.request_queue`.
- It has no D-Bus support. Backlight brightness can be read but not set,
  keyboard layouts come only from `setxkbmap`, batteries only from sysfs or
  apcupsd, and the `wl_gammarelay` hue shifters have no command line
  (`set_command` and `reset_command` raise `ValueError` for them).
- Directory changes are not watched; values are read when asked for.

## Installing

```sh
pip install .
```

To run the tests:

```sh
pip install '.[test]'
pytest
```