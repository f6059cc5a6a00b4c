"""Normalised metric snapshots returned by the monitors.

Snapshots are frozen: once produced they are shared between the cache, HTTP
responses and push messages without copying. Percentages are rounded to two
decimals, byte counts are integers and timestamps are ISO-8601 strings.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from utils.misc import time_iso8601


# ---------- Host ----------
@dataclass(frozen=True)
class CpuSummary:
    usage: float = 0.0
    cores: int = 0
    temperature: float = 0.0


@dataclass(frozen=True)
class MemorySummary:
    total: int = 0
    used: int = 0
    free: int = 0
    usage: float = 0.0


@dataclass(frozen=True)
class DiskSummary:
    """Usage of the root filesystem (``/`` or the first filesystem found)."""

    total: int = 0
    used: int = 0
    free: int = 0
    usage: float = 0.0


@dataclass(frozen=True)
class SystemOverview:
    hostname: str = ""
    uptime: int = 0
    load_average: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    cpu: CpuSummary = field(default_factory=CpuSummary)
    memory: MemorySummary = field(default_factory=MemorySummary)
    disk: DiskSummary = field(default_factory=DiskSummary)
    collected_at: str = field(default_factory=time_iso8601)


@dataclass(frozen=True)
class CoreUsage:
    core: int
    usage: float


@dataclass(frozen=True)
class CpuMetrics:
    usage: float = 0.0
    cores: List[CoreUsage] = field(default_factory=list)
    temperature: float = 0.0
    frequency: float = 0.0
    load_average: Dict[str, float] = field(
        default_factory=lambda: {"1min": 0.0, "5min": 0.0, "15min": 0.0}
    )
    collected_at: str = field(default_factory=time_iso8601)


@dataclass(frozen=True)
class SwapMetrics:
    total: int = 0
    used: int = 0
    free: int = 0


@dataclass(frozen=True)
class MemoryMetrics:
    total: int = 0
    used: int = 0
    free: int = 0
    available: int = 0
    usage: float = 0.0
    swap: SwapMetrics = field(default_factory=SwapMetrics)
    buffers: int = 0
    cached: int = 0
    collected_at: str = field(default_factory=time_iso8601)


@dataclass(frozen=True)
class Filesystem:
    filesystem: str
    mountpoint: str
    type: str
    size: int
    used: int
    available: int
    usage: float


@dataclass(frozen=True)
class IoCounter:
    operations: int = 0
    bytes: int = 0


@dataclass(frozen=True)
class DiskIo:
    read: IoCounter = field(default_factory=IoCounter)
    write: IoCounter = field(default_factory=IoCounter)


@dataclass(frozen=True)
class DiskMetrics:
    filesystems: List[Filesystem] = field(default_factory=list)
    io: DiskIo = field(default_factory=DiskIo)
    collected_at: str = field(default_factory=time_iso8601)


@dataclass(frozen=True)
class InterfaceCounters:
    bytes: int = 0
    packets: int = 0
    errors: int = 0
    dropped: int = 0


@dataclass(frozen=True)
class NetworkInterface:
    name: str
    is_up: bool
    speed: int
    rx: InterfaceCounters
    tx: InterfaceCounters


@dataclass(frozen=True)
class NetworkTotals:
    rx: int = 0
    tx: int = 0


@dataclass(frozen=True)
class ConnectionCounts:
    established: int = 0
    listening: int = 0


@dataclass(frozen=True)
class NetworkMetrics:
    interfaces: List[NetworkInterface] = field(default_factory=list)
    totals: NetworkTotals = field(default_factory=NetworkTotals)
    connections: ConnectionCounts = field(default_factory=ConnectionCounts)
    collected_at: str = field(default_factory=time_iso8601)


# ---------- Containers ----------
@dataclass(frozen=True)
class ContainerPort:
    private_port: int
    type: str
    public_port: Optional[int] = None
    ip: Optional[str] = None


@dataclass(frozen=True)
class ContainerSummary:
    id: str
    name: str
    image: str
    status: str
    state: str
    ports: List[ContainerPort]
    created: Optional[str]
    started: Optional[str] = None


@dataclass(frozen=True)
class ContainerCpu:
    usage: float = 0.0
    system: float = 0.0


@dataclass(frozen=True)
class ContainerMemory:
    usage: int = 0
    limit: int = 0
    percentage: float = 0.0


@dataclass(frozen=True)
class ContainerNetwork:
    rx: int = 0
    tx: int = 0


@dataclass(frozen=True)
class ContainerIo:
    read: int = 0
    write: int = 0


@dataclass(frozen=True)
class ContainerStats:
    id: str = ""
    cpu: ContainerCpu = field(default_factory=ContainerCpu)
    memory: ContainerMemory = field(default_factory=ContainerMemory)
    network: ContainerNetwork = field(default_factory=ContainerNetwork)
    io: ContainerIo = field(default_factory=ContainerIo)
    collected_at: str = field(default_factory=time_iso8601)


@dataclass(frozen=True)
class LogLine:
    timestamp: str
    stream: str
    message: str


@dataclass(frozen=True)
class ContainerLogs:
    logs: List[LogLine] = field(default_factory=list)
    total_lines: int = 0


# ---------- Push channel ----------
@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time aggregate pushed to subscribers on every broadcast tick."""

    system: SystemOverview
    docker: List[ContainerSummary]
    timestamp: str = field(default_factory=time_iso8601)
