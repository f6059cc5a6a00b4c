"""Numeric derivations shared by the host and container monitors."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from model.metrics import DiskSummary, Filesystem
from utils.misc import percent, round2


def container_cpu_percent(cpu_delta: float, system_delta: float, online_cpus: int) -> float:
    """Return ``cpu_delta / system_delta * online_cpus * 100`` rounded to 2 places.

    A non-positive ``system_delta`` yields ``0.0``.
    """
    if system_delta <= 0:
        return 0.0
    return round2((cpu_delta / system_delta) * online_cpus * 100.0)


def cpu_percent_from_stats(stats: Dict[str, Any]) -> tuple[float, float]:
    """Compute ``(cpu_percent, system_delta)`` from a raw Docker stats payload.

    Missing counters count as zero. The online CPU count falls back to the
    length of ``percpu_usage`` and finally to one.
    """
    cpu_stats = stats.get("cpu_stats") or {}
    precpu_stats = stats.get("precpu_stats") or {}

    cpu_delta = (_nested_get(cpu_stats, "cpu_usage", "total_usage") or 0) - (
        _nested_get(precpu_stats, "cpu_usage", "total_usage") or 0
    )
    system_delta = (cpu_stats.get("system_cpu_usage") or 0) - (precpu_stats.get("system_cpu_usage") or 0)

    online_cpus = cpu_stats.get("online_cpus")
    if not online_cpus:
        online_cpus = len(_nested_get(cpu_stats, "cpu_usage", "percpu_usage") or []) or 1

    return container_cpu_percent(cpu_delta, system_delta, online_cpus), round2(system_delta)


def sum_blkio(records: Optional[Iterable[Dict[str, Any]]], operation: str) -> int:
    """Sum ``value`` over blkio records whose ``op`` matches ``operation`` (case-insensitive)."""
    total = 0
    for record in records or []:
        if str(record.get("op", "")).lower() != operation.lower():
            continue
        total += int(record.get("value") or 0)
    return total


def sum_networks(networks: Optional[Dict[str, Dict[str, Any]]]) -> tuple[int, int]:
    """Return ``(rx_bytes, tx_bytes)`` summed across all container networks."""
    rx = tx = 0
    for network in (networks or {}).values():
        rx += int(network.get("rx_bytes") or 0)
        tx += int(network.get("tx_bytes") or 0)
    return rx, tx


def root_filesystem_summary(filesystems: Sequence[Filesystem]) -> DiskSummary:
    """Summarise the filesystem mounted at ``/``, else the first one, else zeros."""
    if not filesystems:
        return DiskSummary()
    root = next((fs for fs in filesystems if fs.mountpoint == "/"), filesystems[0])
    return DiskSummary(
        total=root.size,
        used=root.used,
        free=root.available,
        usage=percent(root.used, root.size),
    )


def _nested_get(data: Dict[str, Any], *keys: str) -> Optional[Any]:
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current
