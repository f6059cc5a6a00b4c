"""Bridge service owning the cache, monitors, subscribers and broadcast timer."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import STATE_PAUSED, STATE_RUNNING, STATE_STOPPED
from apscheduler.triggers.interval import IntervalTrigger

from bridge.broadcaster import MetricsBroadcaster
from bridge.cache import TTLCache
from bridge.registry import SubscriberRegistry
from configs.settings import BridgeSettings
from monitors.base import DockerMonitorBase
from monitors.docker_monitor import DockerMonitorFactory
from monitors.system import SystemMonitor
from utils.logger.logger import Logger
from utils.logger_factory import EnhancedLoggerFactory
from utils.misc import time_s

T = TypeVar("T")

BROADCAST_JOB_ID = "metrics_broadcast"
CACHE_SWEEP_JOB_ID = "cache_sweep"

JOB_DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 1,
}


class BridgeService:
    """Encapsulates bridge lifecycle, request caching and metric streaming.

    Collaborators are constructed from ``settings`` unless injected, which is
    how tests swap in fake monitors.
    """

    def __init__(
        self,
        settings: Optional[BridgeSettings] = None,
        *,
        logger: Optional[Logger] = None,
        cache: Optional[TTLCache] = None,
        system_monitor: Optional[SystemMonitor] = None,
        docker_monitor: Optional[DockerMonitorBase] = None,
        registry: Optional[SubscriberRegistry] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ) -> None:
        """Build the bridge components; nothing touches the network until :meth:`startup`.

        :param settings: Bridge configuration, defaults to :class:`BridgeSettings` defaults.
        :param logger: Service logger; a file-backed application logger otherwise.
        :param cache: Request cache; a :class:`TTLCache` with the configured TTL otherwise.
        :param system_monitor: Host metrics adapter.
        :param docker_monitor: Container adapter; probed at startup when omitted.
        :param registry: Subscriber registry shared with the WebSocket handler.
        :param scheduler: Scheduler driving periodic jobs; created on the running
            loop at startup when omitted.
        """
        self._settings = settings or BridgeSettings()
        self._logger: Logger = logger or EnhancedLoggerFactory.create_application_logger(
            name="metrics_bridge",
            enable_stdout=self._settings.log_stdout,
            log_level=self._settings.log_level,
            log_dir=self._settings.log_dir,
        )
        self._cache = cache or TTLCache(default_ttl=self._settings.cache_ttl)
        self._system_monitor = system_monitor or SystemMonitor(self._logger, timeout=self._settings.adapter_timeout)
        self._docker_monitor = docker_monitor
        self._registry = registry or SubscriberRegistry()
        self._scheduler = scheduler
        self._broadcaster: Optional[MetricsBroadcaster] = None
        self._started = False
        self._started_at: Optional[datetime] = None
        self._started_monotonic: Optional[float] = None

    async def startup(self) -> None:
        """Start logging, probe Docker, schedule the broadcast tick and cache sweep.

        :raises Exception: Propagates scheduler startup failures.
        """
        if self._started:
            return
        await self._logger.start()

        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(
                timezone=timezone.utc,
                job_defaults=JOB_DEFAULTS,
                event_loop=asyncio.get_running_loop(),
            )

        if self._docker_monitor is None:
            factory = DockerMonitorFactory(
                self._logger,
                enabled=self._settings.docker_enabled,
                socket_path=self._settings.docker_socket,
                timeout=self._settings.adapter_timeout,
            )
            self._docker_monitor = await factory.create()

        self._broadcaster = MetricsBroadcaster(
            self._registry,
            self._system_monitor,
            self._docker_monitor,
            self._logger,
            send_timeout=self._settings.adapter_timeout,
        )
        self._scheduler.add_job(
            self._broadcaster.tick,
            trigger=IntervalTrigger(seconds=self._settings.metrics_interval),
            id=BROADCAST_JOB_ID,
            replace_existing=True,
        )
        self._scheduler.add_job(
            self._sweep_cache,
            trigger=IntervalTrigger(seconds=self._settings.cache_check_period),
            id=CACHE_SWEEP_JOB_ID,
            replace_existing=True,
        )
        self._scheduler.start()

        self._started = True
        self._started_at = datetime.now(tz=timezone.utc)
        self._started_monotonic = time_s()
        self._logger.info(
            f"Metrics bridge started (interval={self._settings.metrics_interval}s, "
            f"cache_ttl={self._settings.cache_ttl}s, docker_available={self._docker_monitor.available})"
        )

    async def shutdown(self, *, tick_timeout: Optional[float] = None) -> None:
        """Stop future ticks, let an in-flight tick finish, close subscribers.

        :param tick_timeout: Seconds to wait for an in-flight tick, defaults to
            the adapter timeout.
        """
        if not self._started:
            return
        try:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            if self._broadcaster is not None:
                wait_for = self._settings.adapter_timeout if tick_timeout is None else tick_timeout
                if not await self._broadcaster.wait_idle(timeout=wait_for):
                    self._logger.warning("In-flight broadcast did not finish before shutdown")
            closed = await self._registry.close_all()
            if self._docker_monitor is not None:
                self._docker_monitor.close()
            self._cache.clear()
            self._logger.info(f"Metrics bridge stopped ({closed} subscriber(s) closed)")
        finally:
            self._started = False
            await self._logger.shutdown()

    async def cached(self, key: str, loader: Callable[[], Awaitable[T]], ttl: Optional[float] = None) -> T:
        """Return the cached value for ``key`` or load, store and return it.

        :param key: Cache key, e.g. ``"system:overview"``.
        :param loader: Coroutine factory polling the live source on a miss.
        :param ttl: Entry lifetime, defaults to the configured cache TTL.
        """
        value = self._cache.get(key)
        if value is not None:
            return value
        value = await loader()
        self._cache.set(key, value, ttl)
        return value

    async def _sweep_cache(self) -> None:
        removed = self._cache.sweep()
        if removed:
            self._logger.debug(f"Cache sweep removed {removed} expired entr{'y' if removed == 1 else 'ies'}")

    @property
    def settings(self) -> BridgeSettings:
        return self._settings

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def cache(self) -> TTLCache:
        return self._cache

    @property
    def system_monitor(self) -> SystemMonitor:
        return self._system_monitor

    @property
    def docker_monitor(self) -> DockerMonitorBase:
        """Docker adapter selected at startup.

        :raises RuntimeError: If accessed before :meth:`startup` without injection.
        """
        if self._docker_monitor is None:
            raise RuntimeError("Docker monitor not initialised; call startup() first")
        return self._docker_monitor

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    @property
    def broadcaster(self) -> Optional[MetricsBroadcaster]:
        return self._broadcaster

    @property
    def started(self) -> bool:
        return self._started

    def uptime(self) -> float:
        """Seconds since :meth:`startup`, or ``0`` when not running."""
        if self._started_monotonic is None:
            return 0.0
        return round(time_s() - self._started_monotonic, 2)

    def status(self) -> Dict[str, Any]:
        """Summarise scheduler state, subscriber count and cache size."""
        job = self._scheduler.get_job(BROADCAST_JOB_ID) if self._started else None
        next_run = job.next_run_time if job is not None else None
        return {
            "state": _map_state(self._scheduler.state if self._scheduler else STATE_STOPPED),
            "broadcasting": self._broadcaster.is_broadcasting if self._broadcaster else False,
            "subscribers": len(self._registry),
            "next_broadcast_at": next_run.isoformat() if next_run else None,
            "cache_entries": len(self._cache),
            "started_at": self._started_at.isoformat() if self._started_at else None,
        }


def _map_state(state: int) -> str:
    if state == STATE_RUNNING:
        return "running"
    if state == STATE_PAUSED:
        return "paused"
    if state == STATE_STOPPED:
        return "stopped"
    return str(state)
