"""Shared plumbing for monitors wrapping blocking OS and Docker inspection calls."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from model.metrics import ContainerLogs, ContainerStats, ContainerSummary
from utils.logger.logger import Logger
from utils.logger_factory import log_exception

T = TypeVar("T")


class SourceGuard:
    """Runs blocking source calls in a worker thread with a hard timeout.

    Failures are counted per metric family so health probes can report them;
    nothing is retried, the next poll is a fresh attempt.
    """

    def __init__(self, source: str, logger: Logger, timeout: float) -> None:
        """
        :param source: Name used in log lines, e.g. ``"system"``.
        :param logger: Logger receiving one record per failure.
        :param timeout: Seconds a single call may take before it counts as failed.
        """
        self._source = source
        self._logger = logger
        self._timeout = timeout
        self._failures: Dict[str, int] = {}
        self._last_errors: Dict[str, str] = {}

    @property
    def timeout(self) -> float:
        return self._timeout

    async def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``func`` off the event loop, bounded by the guard timeout.

        :raises asyncio.TimeoutError: If the call exceeds the timeout.
        :raises Exception: Whatever ``func`` raises.
        """
        return await asyncio.wait_for(asyncio.to_thread(func, *args, **kwargs), timeout=self._timeout)

    async def collect(
        self,
        family: str,
        func: Callable[[], T],
        fallback: Callable[[], T],
        errors: Tuple[Type[BaseException], ...],
    ) -> T:
        """Like :meth:`call` but returns ``fallback()`` when the source fails.

        :param family: Metric family name used for logging and failure counts.
        :param func: Blocking reader producing the snapshot.
        :param fallback: Factory for the empty/zero snapshot.
        :param errors: Exception types treated as source failures.
        """
        try:
            return await self.call(func)
        except asyncio.TimeoutError:
            self.record_failure(family, f"timed out after {self._timeout}s")
            self._logger.warning(f"{self._source}.{family} timed out after {self._timeout}s; returning empty snapshot")
        except errors as exc:
            self.record_failure(family, f"{type(exc).__name__}: {exc}")
            log_exception(self._logger, exc, context=f"{self._source}.{family}")
        return fallback()

    def record_failure(self, family: str, message: str) -> None:
        self._failures[family] = self._failures.get(family, 0) + 1
        self._last_errors[family] = message

    def failures(self) -> Dict[str, Dict[str, Any]]:
        """Return ``{family: {"count": n, "last_error": msg}}`` for failed families."""
        return {
            family: {"count": count, "last_error": self._last_errors.get(family)}
            for family, count in self._failures.items()
        }


class DockerMonitorBase(ABC):
    """Container runtime adapter.

    Two variants exist: one backed by a live Docker client and one used when the
    daemon is absent, which always answers with empty data.
    """

    available: bool = False

    @abstractmethod
    async def list_containers(self) -> List[ContainerSummary]:
        """Return every container, running or not; empty when the daemon fails."""
        raise NotImplementedError

    @abstractmethod
    async def get_container_stats(self, container_id: str) -> ContainerStats:
        raise NotImplementedError

    @abstractmethod
    async def get_container_logs(
        self,
        container_id: str,
        lines: int = 100,
        since: Optional[int] = None,
        until: Optional[int] = None,
    ) -> ContainerLogs:
        raise NotImplementedError

    @abstractmethod
    async def status(self) -> Dict[str, Any]:
        """Describe daemon availability for the ``/docker/status`` probe."""
        raise NotImplementedError

    @abstractmethod
    async def check(self) -> Dict[str, Any]:
        """Health-check entry: ``status`` is healthy, unhealthy or unavailable."""
        raise NotImplementedError

    def failures(self) -> Dict[str, Dict[str, Any]]:
        return {}

    def close(self) -> None:
        """Release client resources; safe to call more than once."""
