from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from barblocks.api import BlockError, State
from barblocks.updates import (
    apt_config_text,
    apt_update_count,
    dnf_update_count,
    get_apt_updates,
    get_dnf_updates,
    has_matching_update,
    update_state,
    write_apt_config,
)

APT_OUTPUT = (
    "Listing...\n"
    "linux-image/stable 6.1 amd64 [upgradable from: 6.0]\n"
    "vim/stable 9.0 amd64 [upgradable from: 8.2]\n"
)


def test_apt_update_count_ignores_header():
    assert apt_update_count(APT_OUTPUT) == 2
    assert apt_update_count("Listing...\n") == 0


def test_dnf_update_count_skips_short_lines():
    text = "\nkernel.x86_64  6.1  updates\n \nvim.x86_64  9.0  updates\n"
    assert dnf_update_count(text) == 2


def test_has_matching_update():
    assert has_matching_update(APT_OUTPUT, "(linux|linux-lts|linux-zen)")
    assert not has_matching_update(APT_OUTPUT, "^emacs")


def test_update_state():
    assert update_state(0, True, True) is State.IDLE
    assert update_state(3, True, True) is State.CRITICAL
    assert update_state(3, True, False) is State.WARNING
    assert update_state(1, False, False) is State.INFO


def test_apt_config_text_mentions_cache_dir():
    text = apt_config_text("/cache/dir")
    assert text.startswith('Dir::State "/cache/dir";\n')
    assert 'Dir::Cache "/cache/dir";' in text
    assert text.endswith('Dir::Cache::pkgcache "pkgcache.bin";')


def test_write_apt_config(tmp_path):
    target = tmp_path / "apt-cache"
    path = write_apt_config(target)
    assert path == target / "apt.conf"
    assert path.read_text() == apt_config_text(target)


def _fake_process(stdout):
    proc = MagicMock()
    proc.wait = AsyncMock(return_value=0)
    proc.communicate = AsyncMock(return_value=(stdout, b""))
    return proc


@pytest.mark.asyncio
async def test_get_apt_updates_uses_config():
    proc = _fake_process(APT_OUTPUT.encode())
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)) as spawn:
        result = await get_apt_updates("/x/apt.conf")
    assert result == APT_OUTPUT
    assert spawn.call_count == 2
    assert spawn.call_args.kwargs["env"]["APT_CONFIG"] == "/x/apt.conf"


@pytest.mark.asyncio
async def test_get_dnf_updates_rejects_non_utf8():
    proc = _fake_process(b"\xff\xfe")
    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
        with pytest.raises(BlockError, match="non-UTF8"):
            await get_dnf_updates()


@pytest.mark.asyncio
async def test_get_dnf_updates_missing_shell():
    with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError)):
        with pytest.raises(BlockError, match="dnf check-update"):
            await get_dnf_updates()