"""Request id tagging, request logging, CORS and rate limiting."""

from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from configs.settings import BridgeSettings

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log ``METHOD path status duration``."""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        service = getattr(request.app.state, "bridge", None)
        if service is not None:
            service.logger.info(
                f"[{request_id}] {request.method} {request.url.path} {response.status_code} {duration_ms:.1f}ms"
            )
        return response


class RateLimiter:
    """Moving-window request budget per client address.

    Checked by a router dependency on every ``/api`` route.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        key_func: Callable[[Request], str] = get_remote_address,
    ) -> None:
        """
        :param max_requests: Requests allowed per window.
        :param window_seconds: Window length in seconds.
        :param key_func: Maps a request to the identity the budget is tracked for.
        """
        self._item = RateLimitItemPerSecond(max_requests, window_seconds)
        self._strategy = MovingWindowRateLimiter(MemoryStorage())
        self._key_func = key_func

    def hit(self, request: Request) -> bool:
        """Consume one request from the caller's budget; ``False`` once it is spent."""
        return self._strategy.hit(self._item, self._key_func(request))


def setup_rate_limiting(app: FastAPI, settings: BridgeSettings) -> RateLimiter:
    """Attach the configured per-address limiter for :func:`enforce_rate_limit`."""
    limiter = RateLimiter(settings.rate_limit_max, settings.rate_limit_window)
    app.state.limiter = limiter
    return limiter


def setup_cors(app: FastAPI, settings: BridgeSettings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
