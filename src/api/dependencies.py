"""Shared FastAPI dependencies: bridge service lookup, rate limiting and bearer auth."""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status

from bridge.service import BridgeService
from configs.settings import BridgeSettings
from monitors.errors import RateLimitedError

BEARER_PREFIX = "Bearer "


def resolve_bridge_service(app: FastAPI) -> BridgeService:
    """Return the started bridge service attached to ``app``.

    :raises HTTPException: 503 while the service is not running.
    """
    service: Optional[BridgeService] = getattr(app.state, "bridge", None)
    if service is None or not service.started:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Metrics bridge not ready")
    return service


def get_bridge_service(request: Request) -> BridgeService:
    return resolve_bridge_service(request.app)


def bridge_service_dependency(service: BridgeService = Depends(get_bridge_service)) -> BridgeService:
    return service


def get_settings(request: Request) -> BridgeSettings:
    return request.app.state.settings


def verify_bearer_token(
    authorization: Optional[str] = Header(default=None),
    settings: BridgeSettings = Depends(get_settings),
) -> None:
    """Reject requests whose ``Authorization: Bearer`` token is not the API key.

    :raises HTTPException: 500 if no API key is configured, 401 on a missing,
        malformed or wrong token.
    """
    if not settings.api_key:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server configuration error")

    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization[len(BEARER_PREFIX):]
    if not hmac.compare_digest(token.encode("utf-8"), settings.api_key.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def enforce_rate_limit(request: Request) -> None:
    """Count the request against the caller's budget.

    :raises RateLimitedError: Once the budget for the current window is spent.
    """
    limiter = request.app.state.limiter
    if not limiter.hit(request):
        raise RateLimitedError()
