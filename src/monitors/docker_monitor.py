"""Container metrics adapters backed by the Docker SDK.

:class:`DockerMonitorFactory` probes the daemon once at startup and hands back
either a live :class:`DockerMonitor` or an :class:`UnavailableDockerMonitor`
that answers every call with empty data.
"""

from __future__ import annotations

import asyncio
import math
import re
from typing import Any, Dict, List, Optional

import docker
import requests
from docker.errors import DockerException, NotFound

from model.metrics import (
    ContainerCpu,
    ContainerIo,
    ContainerLogs,
    ContainerMemory,
    ContainerNetwork,
    ContainerPort,
    ContainerStats,
    ContainerSummary,
    LogLine,
)
from monitors.base import DockerMonitorBase, SourceGuard
from monitors.calculations import cpu_percent_from_stats, sum_blkio, sum_networks
from monitors.errors import ContainerNotFoundError, SourceUnreachableError
from utils.logger.logger import Logger
from utils.misc import iso8601_to_unix, percent, time_iso8601, unix_to_iso8601

# Failures raised by the SDK or its HTTP transport when the daemon misbehaves.
SOURCE_ERRORS = (DockerException, requests.exceptions.RequestException, OSError)

SHORT_ID_LENGTH = 12

# Docker stamps log lines with nanoseconds; datetimes hold microseconds.
SUB_MICROSECOND_DIGITS = re.compile(r"(\.\d{6})\d+")


class DockerMonitor(DockerMonitorBase):
    """Live adapter wrapping a connected ``docker.DockerClient``."""

    available = True

    def __init__(
        self,
        client: docker.DockerClient,
        logger: Logger,
        *,
        timeout: float = 3.0,
        socket_path: str = "/var/run/docker.sock",
    ) -> None:
        """
        :param client: Connected Docker client; the monitor takes ownership.
        :param logger: Logger used for failure diagnostics.
        :param timeout: Seconds allowed for a single daemon call.
        :param socket_path: Socket the client talks to, reported by :meth:`status`.
        """
        self._client = client
        self._logger = logger
        self._socket_path = socket_path
        self._guard = SourceGuard("docker", logger, timeout)

    async def list_containers(self) -> List[ContainerSummary]:
        return await self._guard.collect("containers", self._read_containers, list, SOURCE_ERRORS)

    async def get_container_stats(self, container_id: str) -> ContainerStats:
        """Return CPU, memory, network and block I/O usage for one container.

        :raises ContainerNotFoundError: If the daemon does not know ``container_id``.
        :raises SourceUnreachableError: On timeouts or daemon errors.
        """
        raw = await self._strict_call("stats", container_id, self._client.api.stats, container_id, stream=False)
        return format_container_stats(container_id, raw)

    async def get_container_logs(
        self,
        container_id: str,
        lines: int = 100,
        since: Optional[int] = None,
        until: Optional[int] = None,
    ) -> ContainerLogs:
        """Return the last ``lines`` log lines of stdout and stderr, oldest first.

        :raises ContainerNotFoundError: If the daemon does not know ``container_id``.
        :raises SourceUnreachableError: On timeouts or daemon errors.
        """
        options = {"timestamps": True, "tail": lines}
        if since is not None:
            options["since"] = since
        if until is not None:
            options["until"] = until

        stdout, stderr = await asyncio.gather(
            self._strict_call(
                "logs", container_id, self._client.api.logs, container_id, stdout=True, stderr=False, **options
            ),
            self._strict_call(
                "logs", container_id, self._client.api.logs, container_id, stdout=False, stderr=True, **options
            ),
        )
        merged = parse_log_lines(stdout, "stdout") + parse_log_lines(stderr, "stderr")
        merged.sort(key=lambda line: _sort_key(line.timestamp))
        merged = merged[-lines:] if lines else merged
        return ContainerLogs(logs=merged, total_lines=len(merged))

    async def status(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {
            "available": True,
            "enabled": True,
            "socket_path": self._socket_path,
        }
        try:
            containers = await self._guard.call(self._read_containers)
        except asyncio.TimeoutError:
            status.update(healthy=False, error=f"timed out after {self._guard.timeout}s")
        except SOURCE_ERRORS as exc:
            status.update(healthy=False, error=str(exc))
        else:
            status.update(healthy=True, containers=len(containers))
        return status

    async def check(self) -> Dict[str, Any]:
        status = await self.status()
        if not status["healthy"]:
            return {"status": "unhealthy", "error": status["error"], "available": False}
        return {"status": "healthy", "containers": status["containers"], "available": True}

    def failures(self) -> Dict[str, Dict[str, Any]]:
        return self._guard.failures()

    def close(self) -> None:
        self._client.close()

    async def _strict_call(self, family: str, container_id: str, func, *args, **kwargs):
        """Call the daemon and translate failures into bridge errors."""
        try:
            return await self._guard.call(func, *args, **kwargs)
        except NotFound as exc:
            raise ContainerNotFoundError(container_id) from exc
        except asyncio.TimeoutError as exc:
            self._guard.record_failure(family, f"timed out after {self._guard.timeout}s")
            self._logger.warning(f"docker.{family} for {container_id} timed out after {self._guard.timeout}s")
            raise SourceUnreachableError("Docker service temporarily unavailable") from exc
        except SOURCE_ERRORS as exc:
            self._guard.record_failure(family, f"{type(exc).__name__}: {exc}")
            self._logger.error(f"docker.{family} for {container_id} failed: {type(exc).__name__}: {exc}")
            raise SourceUnreachableError("Docker service temporarily unavailable") from exc

    def _read_containers(self) -> List[ContainerSummary]:
        summaries: List[ContainerSummary] = []
        for raw in self._client.api.containers(all=True):
            started_at = self._read_started_at(raw.get("Id", "")) if raw.get("State") == "running" else None
            summaries.append(format_container_summary(raw, started_at))
        return summaries

    def _read_started_at(self, container_id: str) -> Optional[str]:
        """Return the raw ``State.StartedAt`` of a container, ``None`` if it vanished."""
        try:
            details = self._client.api.inspect_container(container_id)
        except NotFound:
            return None
        return (details.get("State") or {}).get("StartedAt")


class UnavailableDockerMonitor(DockerMonitorBase):
    """Adapter used when the daemon is disabled or could not be reached at startup."""

    available = False

    def __init__(self, reason: str, *, enabled: bool = True, socket_path: str = "/var/run/docker.sock") -> None:
        self._reason = reason
        self._enabled = enabled
        self._socket_path = socket_path

    async def list_containers(self) -> List[ContainerSummary]:
        return []

    async def get_container_stats(self, container_id: str) -> ContainerStats:
        return ContainerStats(id=container_id[:SHORT_ID_LENGTH])

    async def get_container_logs(
        self,
        container_id: str,
        lines: int = 100,
        since: Optional[int] = None,
        until: Optional[int] = None,
    ) -> ContainerLogs:
        return ContainerLogs()

    async def status(self) -> Dict[str, Any]:
        return {
            "available": False,
            "enabled": self._enabled,
            "socket_path": self._socket_path,
            "error": self._reason,
        }

    async def check(self) -> Dict[str, Any]:
        return {
            "status": "unavailable",
            "message": "Docker daemon is not accessible or not running",
            "containers": [],
        }


class DockerMonitorFactory:
    """Select the docker adapter variant with a one-off capability probe."""

    def __init__(
        self,
        logger: Logger,
        *,
        enabled: bool = True,
        socket_path: str = "/var/run/docker.sock",
        timeout: float = 3.0,
    ) -> None:
        self._logger = logger
        self._enabled = enabled
        self._socket_path = socket_path
        self._timeout = timeout

    async def create(self) -> DockerMonitorBase:
        """Connect and ping the daemon; fall back to the unavailable variant on failure."""
        if not self._enabled:
            self._logger.info("Docker monitoring disabled by configuration")
            return UnavailableDockerMonitor(
                "Docker monitoring disabled", enabled=False, socket_path=self._socket_path
            )

        guard = SourceGuard("docker", self._logger, self._timeout)
        try:
            client = await guard.call(self._connect)
        except asyncio.TimeoutError:
            reason = f"Docker probe timed out after {self._timeout}s"
        except SOURCE_ERRORS as exc:
            reason = f"{type(exc).__name__}: {exc}"
        else:
            self._logger.info(f"Docker daemon reachable at {self._socket_path}")
            return DockerMonitor(client, self._logger, timeout=self._timeout, socket_path=self._socket_path)

        self._logger.warning(f"Docker daemon unavailable at {self._socket_path}: {reason}")
        return UnavailableDockerMonitor(reason, socket_path=self._socket_path)

    def _connect(self) -> docker.DockerClient:
        client = docker.DockerClient(
            base_url=f"unix://{self._socket_path}",
            timeout=max(1, math.ceil(self._timeout)),
        )
        try:
            client.ping()
        except Exception:
            client.close()
            raise
        return client


def format_container_summary(raw: Dict[str, Any], started_at: Optional[str] = None) -> ContainerSummary:
    """Project an entry of ``GET /containers/json`` into a :class:`ContainerSummary`.

    :param raw: Container list entry.
    :param started_at: ``State.StartedAt`` from an inspect call, for running containers.
    """
    names = raw.get("Names") or []
    created = raw.get("Created")
    return ContainerSummary(
        id=str(raw.get("Id", ""))[:SHORT_ID_LENGTH],
        name=names[0].lstrip("/") if names else "",
        image=raw.get("Image", ""),
        status=raw.get("State", ""),
        state=raw.get("Status", ""),
        ports=[
            ContainerPort(
                private_port=int(port.get("PrivatePort") or 0),
                type=port.get("Type", "tcp"),
                public_port=port.get("PublicPort"),
                ip=port.get("IP"),
            )
            for port in raw.get("Ports") or []
        ],
        created=unix_to_iso8601(created) if created else None,
        started=_docker_time_to_iso8601(started_at),
    )


def format_container_stats(container_id: str, stats: Dict[str, Any]) -> ContainerStats:
    """Project a one-shot Docker stats payload into a :class:`ContainerStats`."""
    cpu_usage, system_delta = cpu_percent_from_stats(stats)

    memory_stats = stats.get("memory_stats") or {}
    mem_usage = int(memory_stats.get("usage") or 0)
    mem_limit = int(memory_stats.get("limit") or 0)

    rx, tx = sum_networks(stats.get("networks"))
    io_records = (stats.get("blkio_stats") or {}).get("io_service_bytes_recursive")

    return ContainerStats(
        id=str(stats.get("id") or container_id)[:SHORT_ID_LENGTH],
        cpu=ContainerCpu(usage=cpu_usage, system=system_delta),
        memory=ContainerMemory(usage=mem_usage, limit=mem_limit, percentage=percent(mem_usage, mem_limit)),
        network=ContainerNetwork(rx=rx, tx=tx),
        io=ContainerIo(read=sum_blkio(io_records, "read"), write=sum_blkio(io_records, "write")),
    )


def parse_log_lines(raw: bytes, stream: str) -> List[LogLine]:
    """Split timestamped Docker log output into :class:`LogLine` records."""
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw or "")
    parsed: List[LogLine] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        timestamp, _, message = line.partition(" ")
        timestamp = SUB_MICROSECOND_DIGITS.sub(r"\1", timestamp)
        if not _is_timestamp(timestamp):
            timestamp, message = time_iso8601(), line
        parsed.append(LogLine(timestamp=timestamp, stream=stream, message=message.strip()))
    return parsed


def _is_timestamp(value: str) -> bool:
    try:
        iso8601_to_unix(value)
    except ValueError:
        return False
    return True


def _docker_time_to_iso8601(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return unix_to_iso8601(iso8601_to_unix(SUB_MICROSECOND_DIGITS.sub(r"\1", value)))
    except (ValueError, OverflowError, OSError):
        return None


def _sort_key(timestamp: str) -> float:
    try:
        return iso8601_to_unix(timestamp)
    except ValueError:
        return 0.0
