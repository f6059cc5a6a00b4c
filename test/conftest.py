import asyncio
from collections import Counter
from typing import Any, Dict, List, Optional

import pytest

from configs.settings import BridgeSettings
from model.metrics import (
    ContainerLogs,
    ContainerStats,
    ContainerSummary,
    CpuMetrics,
    CpuSummary,
    DiskMetrics,
    LogLine,
    MemoryMetrics,
    MemorySummary,
    NetworkMetrics,
    SystemOverview,
)
from monitors.base import DockerMonitorBase
from monitors.errors import ContainerNotFoundError
from utils.logger_factory import EnhancedLoggerFactory


class FakeSystemMonitor:
    """In-memory host monitor counting how often each family is polled."""

    def __init__(self) -> None:
        self.calls = Counter()
        self.failing = set()
        self.health = {"status": "healthy"}
        self.overview = SystemOverview(
            hostname="edge-01",
            uptime=3600,
            load_average=[0.5, 0.4, 0.3],
            cpu=CpuSummary(usage=12.5, cores=4, temperature=48.0),
            memory=MemorySummary(total=4000, used=1000, free=3000, usage=25.0),
        )

    async def _read(self, family: str, value: Any) -> Any:
        self.calls[family] += 1
        if family in self.failing:
            raise RuntimeError(f"{family} counters unavailable")
        return value

    async def get_overview(self) -> SystemOverview:
        return await self._read("overview", self.overview)

    async def get_cpu(self) -> CpuMetrics:
        return await self._read("cpu", CpuMetrics(usage=12.5))

    async def get_memory(self) -> MemoryMetrics:
        return await self._read("memory", MemoryMetrics(total=4000, used=1000, usage=25.0))

    async def get_disk(self) -> DiskMetrics:
        return await self._read("disk", DiskMetrics())

    async def get_network(self) -> NetworkMetrics:
        return await self._read("network", NetworkMetrics())

    async def check(self) -> Dict[str, Any]:
        return self.health

    def failures(self) -> Dict[str, Dict[str, Any]]:
        return {}


class FakeDockerMonitor(DockerMonitorBase):
    """Docker adapter with a fixed container set."""

    available = True

    def __init__(self) -> None:
        self.calls = Counter()
        self.fail_listing = False
        self.log_requests: List[Dict[str, Any]] = []
        self.containers = [
            ContainerSummary(
                id="abc123def456",
                name="web",
                image="nginx:latest",
                status="running",
                state="Up 2 hours",
                ports=[],
                created="2024-01-01T00:00:00.000Z",
            )
        ]

    def _require(self, container_id: str) -> None:
        if not any(container.id == container_id for container in self.containers):
            raise ContainerNotFoundError(container_id)

    async def list_containers(self) -> List[ContainerSummary]:
        self.calls["containers"] += 1
        if self.fail_listing:
            raise RuntimeError("docker daemon went away")
        return list(self.containers)

    async def get_container_stats(self, container_id: str) -> ContainerStats:
        self.calls["stats"] += 1
        self._require(container_id)
        return ContainerStats(id=container_id)

    async def get_container_logs(
        self,
        container_id: str,
        lines: int = 100,
        since: Optional[int] = None,
        until: Optional[int] = None,
    ) -> ContainerLogs:
        self._require(container_id)
        self.log_requests.append({"lines": lines, "since": since, "until": until})
        logs = [LogLine(timestamp="2024-01-01T00:00:01.000Z", stream="stdout", message="ready")]
        return ContainerLogs(logs=logs, total_lines=len(logs))

    async def status(self) -> Dict[str, Any]:
        return {"available": True, "enabled": True, "socket_path": "/var/run/docker.sock", "healthy": True}

    async def check(self) -> Dict[str, Any]:
        return {"status": "healthy", "containers": len(self.containers), "available": True}


class FakeSubscriber:
    def __init__(self, name: str, fail: bool = False, hang: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.hang = hang
        self.open = True
        self.messages: List[str] = []
        self.closed = False

    @property
    def is_open(self) -> bool:
        return self.open

    async def send(self, message: str) -> None:
        if self.hang:
            await asyncio.sleep(3600)
        if self.fail:
            raise ConnectionResetError("peer reset")
        self.messages.append(message)

    async def close(self) -> None:
        self.open = False
        self.closed = True

    def __repr__(self) -> str:
        return f"FakeSubscriber({self.name})"


@pytest.fixture
def silent_logger():
    return EnhancedLoggerFactory.create_silent_logger()


@pytest.fixture
def fake_system_monitor() -> FakeSystemMonitor:
    return FakeSystemMonitor()


@pytest.fixture
def fake_docker_monitor() -> FakeDockerMonitor:
    return FakeDockerMonitor()


@pytest.fixture
def subscriber_factory():
    def _factory(name: str, fail: bool = False, hang: bool = False) -> FakeSubscriber:
        return FakeSubscriber(name, fail=fail, hang=hang)

    return _factory


@pytest.fixture
def bridge_settings() -> BridgeSettings:
    return BridgeSettings(
        api_key="test-key",
        allowed_origins=["http://dashboard.local"],
        metrics_interval=0.2,
        adapter_timeout=0.1,
        log_dir=None,
        log_stdout=False,
        docker_enabled=False,
    )
