import time
from types import SimpleNamespace

import psutil
import pytest

from monitors.system import SystemMonitor


@pytest.fixture
def monitor(silent_logger) -> SystemMonitor:
    return SystemMonitor(silent_logger, timeout=2.0)


def _fake_virtual_memory():
    return SimpleNamespace(total=8000, used=2000, free=6000, available=5500, buffers=100, cached=300)


@pytest.mark.asyncio
async def test_memory_metrics_derive_usage(monkeypatch, monitor):
    monkeypatch.setattr("monitors.system.psutil.virtual_memory", _fake_virtual_memory)
    monkeypatch.setattr(
        "monitors.system.psutil.swap_memory", lambda: SimpleNamespace(total=1000, used=10, free=990)
    )

    memory = await monitor.get_memory()

    assert memory.usage == pytest.approx(25.0)
    assert memory.available == 5500
    assert memory.swap.used == 10


@pytest.mark.asyncio
async def test_unreadable_memory_degrades_to_zero(monkeypatch, monitor):
    def _denied():
        raise psutil.AccessDenied()

    monkeypatch.setattr("monitors.system.psutil.virtual_memory", _denied)

    memory = await monitor.get_memory()

    assert memory.total == 0
    assert memory.usage == 0.0
    assert monitor.failures()["memory"]["count"] == 1


@pytest.mark.asyncio
async def test_overview_keeps_other_parts_when_one_fails(monkeypatch, monitor):
    def _broken():
        raise OSError("no /proc/meminfo")

    monkeypatch.setattr("monitors.system.psutil.virtual_memory", _broken)

    overview = await monitor.get_overview()

    assert overview.memory.total == 0
    assert overview.hostname != ""


@pytest.mark.asyncio
async def test_disk_skips_unreadable_mounts(monkeypatch, monitor):
    partitions = [
        SimpleNamespace(device="/dev/sda1", mountpoint="/", fstype="ext4"),
        SimpleNamespace(device="/dev/sdb1", mountpoint="/media/usb", fstype="vfat"),
    ]

    def _usage(mountpoint):
        if mountpoint == "/media/usb":
            raise PermissionError(mountpoint)
        return SimpleNamespace(total=1000, used=400, free=600)

    monkeypatch.setattr("monitors.system.psutil.disk_partitions", lambda all=False: partitions)
    monkeypatch.setattr("monitors.system.psutil.disk_usage", _usage)
    monkeypatch.setattr("monitors.system.psutil.disk_io_counters", lambda perdisk=False: {})

    disk = await monitor.get_disk()

    assert [fs.mountpoint for fs in disk.filesystems] == ["/"]
    assert disk.filesystems[0].usage == pytest.approx(40.0)
    assert disk.io.read.bytes == 0


@pytest.mark.asyncio
async def test_check_reports_unhealthy_on_failure(monkeypatch, monitor):
    def _broken():
        raise OSError("no /proc/meminfo")

    monkeypatch.setattr("monitors.system.psutil.virtual_memory", _broken)

    check = await monitor.check()

    assert check["status"] == "unhealthy"
    assert "meminfo" in check["error"]


@pytest.mark.asyncio
async def test_network_denied_connections_count_as_zero(monkeypatch, monitor):
    def _denied(kind="inet"):
        raise psutil.AccessDenied()

    monkeypatch.setattr("monitors.system.psutil.net_connections", _denied)

    network = await monitor.get_network()

    assert network.connections.established == 0
    assert network.totals.rx >= 0


@pytest.mark.asyncio
async def test_slow_reader_times_out_to_zeroed_snapshot(monkeypatch, silent_logger):
    def _stalled():
        time.sleep(0.5)
        return _fake_virtual_memory()

    monkeypatch.setattr("monitors.system.psutil.virtual_memory", _stalled)
    monitor = SystemMonitor(silent_logger, timeout=0.05)

    memory = await monitor.get_memory()

    assert memory.total == 0
    assert memory.usage == 0.0
    failure = monitor.failures()["memory"]
    assert failure["count"] == 1
    assert "timed out" in failure["last_error"]


@pytest.mark.asyncio
async def test_slow_reader_marks_check_unhealthy(monkeypatch, silent_logger):
    def _stalled():
        time.sleep(0.5)
        return _fake_virtual_memory()

    monkeypatch.setattr("monitors.system.psutil.virtual_memory", _stalled)
    monitor = SystemMonitor(silent_logger, timeout=0.05)

    check = await monitor.check()

    assert check["status"] == "unhealthy"
    assert "timed out" in check["error"]
