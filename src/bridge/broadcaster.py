"""Periodic push of live host and container metrics to subscribers."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder

from bridge.registry import Subscriber, SubscriberRegistry
from model.metrics import ContainerSummary, MetricsSnapshot, SystemOverview
from monitors.base import DockerMonitorBase
from monitors.system import SystemMonitor
from utils.logger.logger import Logger
from utils.logger_factory import log_exception
from utils.model_parser import model_parser

MESSAGE_TYPE = "metrics_update"


class MetricsBroadcaster:
    """Build a :class:`MetricsSnapshot` on each tick and fan it out.

    The broadcaster is idle while the registry is empty: a tick then performs
    no poll at all. Polls bypass the request cache. A failure in one metric
    family degrades that family to empty data; a failing subscriber is pruned.
    Neither stops the tick.
    """

    def __init__(
        self,
        registry: SubscriberRegistry,
        system_monitor: SystemMonitor,
        docker_monitor: DockerMonitorBase,
        logger: Logger,
        *,
        send_timeout: float = 3.0,
    ) -> None:
        """
        :param registry: Subscribers receiving each message.
        :param system_monitor: Source of the ``system`` section.
        :param docker_monitor: Source of the ``docker`` section.
        :param logger: Logger for tick diagnostics.
        :param send_timeout: Seconds a single subscriber send may take.
        """
        self._registry = registry
        self._system_monitor = system_monitor
        self._docker_monitor = docker_monitor
        self._logger = logger
        self._send_timeout = send_timeout
        self._idle = asyncio.Event()
        self._idle.set()
        self.ticks = 0
        self.last_delivered = 0

    @property
    def is_broadcasting(self) -> bool:
        """``True`` while at least one subscriber is connected."""
        return not self._registry.is_empty()

    async def tick(self) -> int:
        """Run one poll-and-send cycle.

        :return: Number of subscribers the message was delivered to.
        """
        if self._registry.is_empty():
            return 0

        self._idle.clear()
        try:
            snapshot = await self.collect_snapshot()
            message = json.dumps(jsonable_encoder(build_envelope(snapshot)))
            delivered = 0

            async def _send(subscriber: Subscriber) -> None:
                nonlocal delivered
                try:
                    await asyncio.wait_for(subscriber.send(message), timeout=self._send_timeout)
                except Exception as exc:
                    self._logger.warning(f"Dropping subscriber {subscriber!r}: {type(exc).__name__}: {exc}")
                    raise
                delivered += 1

            pruned = await self._registry.for_each(_send)
            if pruned:
                self._logger.info(f"Pruned {len(pruned)} closed subscriber(s); {len(self._registry)} remaining")
            self.ticks += 1
            self.last_delivered = delivered
            return delivered
        except Exception as exc:
            log_exception(self._logger, exc, context="metrics_broadcast")
            return 0
        finally:
            self._idle.set()

    async def collect_snapshot(self) -> MetricsSnapshot:
        """Poll both sources concurrently, substituting empty data for a failed family."""
        system, containers = await asyncio.gather(
            self._system_monitor.get_overview(),
            self._docker_monitor.list_containers(),
            return_exceptions=True,
        )
        if isinstance(system, BaseException):
            log_exception(self._logger, system, context="metrics_broadcast.system")
            system = SystemOverview()
        if isinstance(containers, BaseException):
            log_exception(self._logger, containers, context="metrics_broadcast.docker")
            containers = []
        return MetricsSnapshot(system=system, docker=containers)

    async def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait for an in-flight tick to finish; return ``False`` on timeout."""
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


def build_envelope(snapshot: MetricsSnapshot) -> Dict[str, Any]:
    """Wrap a snapshot in the ``{type, timestamp, data}`` push envelope."""
    containers: List[ContainerSummary] = snapshot.docker
    return {
        "type": MESSAGE_TYPE,
        "timestamp": snapshot.timestamp,
        "data": {
            "system": model_parser(snapshot.system),
            "docker": [model_parser(container) for container in containers],
        },
    }
