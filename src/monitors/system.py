"""Host metrics adapter backed by psutil."""

from __future__ import annotations

import asyncio
import os
import socket
import time
from typing import Any, Dict, List

import psutil

from model.metrics import (
    ConnectionCounts,
    CoreUsage,
    CpuMetrics,
    CpuSummary,
    DiskIo,
    DiskMetrics,
    Filesystem,
    InterfaceCounters,
    IoCounter,
    MemoryMetrics,
    MemorySummary,
    NetworkInterface,
    NetworkMetrics,
    NetworkTotals,
    SwapMetrics,
    SystemOverview,
)
from monitors.base import SourceGuard
from monitors.calculations import root_filesystem_summary
from utils.logger.logger import Logger
from utils.misc import percent, round2

# Failures psutil surfaces when a device or counter is unreadable.
SOURCE_ERRORS = (psutil.Error, OSError, RuntimeError)

# Sensor chips tried first when reading the CPU temperature.
PREFERRED_SENSORS = ("cpu_thermal", "coretemp", "k10temp", "soc_thermal", "cpu-thermal")


class SystemMonitor:
    """Produce host CPU, memory, disk and network snapshots.

    Every public read returns a zeroed snapshot instead of raising when the
    underlying counters are unavailable.
    """

    def __init__(self, logger: Logger, *, timeout: float = 3.0) -> None:
        """
        :param logger: Logger used for failure diagnostics.
        :param timeout: Seconds allowed for a single psutil read.
        """
        self._logger = logger
        self._guard = SourceGuard("system", logger, timeout)
        # The first non-blocking cpu_percent call always reports 0.0.
        psutil.cpu_percent(interval=None)
        psutil.cpu_percent(interval=None, percpu=True)

    async def get_overview(self) -> SystemOverview:
        """Aggregate host identity, CPU, memory and root filesystem usage.

        Each part degrades independently, so one failing counter never blanks
        the whole overview.
        """
        host, cpu, memory, filesystems = await asyncio.gather(
            self._guard.collect("host", _read_host, _empty_host, SOURCE_ERRORS),
            self._guard.collect("cpu", _read_cpu_summary, CpuSummary, SOURCE_ERRORS),
            self._guard.collect("memory", _read_memory_summary, MemorySummary, SOURCE_ERRORS),
            self._guard.collect("disk", _read_filesystems, list, SOURCE_ERRORS),
        )
        return SystemOverview(
            hostname=host["hostname"],
            uptime=host["uptime"],
            load_average=host["load_average"],
            cpu=cpu,
            memory=memory,
            disk=root_filesystem_summary(filesystems),
        )

    async def get_cpu(self) -> CpuMetrics:
        return await self._guard.collect("cpu", _read_cpu, CpuMetrics, SOURCE_ERRORS)

    async def get_memory(self) -> MemoryMetrics:
        return await self._guard.collect("memory", _read_memory, MemoryMetrics, SOURCE_ERRORS)

    async def get_disk(self) -> DiskMetrics:
        return await self._guard.collect("disk", _read_disk, DiskMetrics, SOURCE_ERRORS)

    async def get_network(self) -> NetworkMetrics:
        return await self._guard.collect("network", _read_network, NetworkMetrics, SOURCE_ERRORS)

    async def check(self) -> Dict[str, Any]:
        """Read the overview counters strictly and report ``healthy``/``unhealthy``."""
        try:
            await asyncio.gather(
                self._guard.call(_read_host),
                self._guard.call(_read_cpu_summary),
                self._guard.call(_read_memory_summary),
            )
        except asyncio.TimeoutError:
            return {"status": "unhealthy", "error": f"timed out after {self._guard.timeout}s"}
        except SOURCE_ERRORS as exc:
            return {"status": "unhealthy", "error": str(exc)}
        return {"status": "healthy"}

    def failures(self) -> Dict[str, Dict[str, Any]]:
        return self._guard.failures()


def _empty_host() -> Dict[str, Any]:
    return {"hostname": "", "uptime": 0, "load_average": [0.0, 0.0, 0.0]}


def _load_average() -> List[float]:
    try:
        return [round2(value) for value in os.getloadavg()]
    except (AttributeError, OSError):
        return [round2(value) for value in psutil.getloadavg()]


def _read_host() -> Dict[str, Any]:
    return {
        "hostname": socket.gethostname(),
        "uptime": max(0, int(time.time() - psutil.boot_time())),
        "load_average": _load_average(),
    }


def _read_temperature() -> float:
    """Return the main CPU temperature in Celsius, or ``0.0`` without sensors."""
    reader = getattr(psutil, "sensors_temperatures", None)
    if reader is None:
        return 0.0
    readings = reader() or {}
    for name in PREFERRED_SENSORS:
        if readings.get(name):
            return round2(readings[name][0].current)
    for entries in readings.values():
        if entries:
            return round2(entries[0].current)
    return 0.0


def _read_cpu_summary() -> CpuSummary:
    return CpuSummary(
        usage=round2(psutil.cpu_percent(interval=None)),
        cores=psutil.cpu_count(logical=True) or 0,
        temperature=_read_temperature(),
    )


def _read_memory_summary() -> MemorySummary:
    vm = psutil.virtual_memory()
    return MemorySummary(
        total=int(vm.total),
        used=int(vm.used),
        free=int(vm.free),
        usage=percent(vm.used, vm.total),
    )


def _read_cpu() -> CpuMetrics:
    per_core = psutil.cpu_percent(interval=None, percpu=True)
    freq = psutil.cpu_freq()
    one, five, fifteen = _load_average()
    return CpuMetrics(
        usage=round2(psutil.cpu_percent(interval=None)),
        cores=[CoreUsage(core=index, usage=round2(load)) for index, load in enumerate(per_core)],
        temperature=_read_temperature(),
        frequency=round2(freq.current) if freq else 0.0,
        load_average={"1min": one, "5min": five, "15min": fifteen},
    )


def _read_memory() -> MemoryMetrics:
    vm = psutil.virtual_memory()
    swap = psutil.swap_memory()
    return MemoryMetrics(
        total=int(vm.total),
        used=int(vm.used),
        free=int(vm.free),
        available=int(vm.available),
        usage=percent(vm.used, vm.total),
        swap=SwapMetrics(total=int(swap.total), used=int(swap.used), free=int(swap.free)),
        buffers=int(getattr(vm, "buffers", 0)),
        cached=int(getattr(vm, "cached", 0)),
    )


def _read_filesystems() -> List[Filesystem]:
    """List mounted filesystems, skipping mounts that cannot be stat'ed."""
    filesystems: List[Filesystem] = []
    seen = set()
    for partition in psutil.disk_partitions(all=False):
        if partition.mountpoint in seen:
            continue
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError:
            continue
        seen.add(partition.mountpoint)
        filesystems.append(
            Filesystem(
                filesystem=partition.device,
                mountpoint=partition.mountpoint,
                type=partition.fstype,
                size=int(usage.total),
                used=int(usage.used),
                available=int(usage.free),
                usage=percent(usage.used, usage.total),
            )
        )
    return filesystems


def _read_disk_io() -> DiskIo:
    counters = psutil.disk_io_counters(perdisk=True) or {}
    read_ops = read_bytes = write_ops = write_bytes = 0
    for device in counters.values():
        read_ops += device.read_count
        read_bytes += device.read_bytes
        write_ops += device.write_count
        write_bytes += device.write_bytes
    return DiskIo(
        read=IoCounter(operations=int(read_ops), bytes=int(read_bytes)),
        write=IoCounter(operations=int(write_ops), bytes=int(write_bytes)),
    )


def _read_disk() -> DiskMetrics:
    return DiskMetrics(filesystems=_read_filesystems(), io=_read_disk_io())


def _read_connections() -> ConnectionCounts:
    try:
        connections = psutil.net_connections(kind="inet")
    except psutil.AccessDenied:
        return ConnectionCounts()
    established = sum(1 for conn in connections if conn.status == psutil.CONN_ESTABLISHED)
    listening = sum(1 for conn in connections if conn.status == psutil.CONN_LISTEN)
    return ConnectionCounts(established=established, listening=listening)


def _read_network() -> NetworkMetrics:
    counters = psutil.net_io_counters(pernic=True) or {}
    if_stats = psutil.net_if_stats()

    interfaces: List[NetworkInterface] = []
    rx_total = tx_total = 0
    for name, io in counters.items():
        stats = if_stats.get(name)
        interfaces.append(
            NetworkInterface(
                name=name,
                is_up=bool(stats.isup) if stats else False,
                speed=int(stats.speed) if stats else 0,
                rx=InterfaceCounters(
                    bytes=int(io.bytes_recv),
                    packets=int(io.packets_recv),
                    errors=int(io.errin),
                    dropped=int(io.dropin),
                ),
                tx=InterfaceCounters(
                    bytes=int(io.bytes_sent),
                    packets=int(io.packets_sent),
                    errors=int(io.errout),
                    dropped=int(io.dropout),
                ),
            )
        )
        rx_total += io.bytes_recv
        tx_total += io.bytes_sent

    return NetworkMetrics(
        interfaces=interfaces,
        totals=NetworkTotals(rx=int(rx_total), tx=int(tx_total)),
        connections=_read_connections(),
    )
