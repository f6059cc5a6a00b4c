"""Health endpoint aggregating system, docker and cache checks."""

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import bridge_service_dependency
from api.responses import success
from bridge.cache import TTLCache
from bridge.service import BridgeService


router = APIRouter()

HEALTH_PROBE_KEY = "health:probe"


async def check_cache(cache: TTLCache) -> Dict[str, Any]:
    """Round-trip a probe value through the cache."""
    try:
        cache.set(HEALTH_PROBE_KEY, "ok", ttl=1)
        value = cache.get(HEALTH_PROBE_KEY)
        cache.delete(HEALTH_PROBE_KEY)
    except Exception as exc:
        return {"status": "unhealthy", "error": str(exc)}
    if value != "ok":
        return {"status": "unhealthy", "error": "cache round-trip returned no value"}
    return {"status": "healthy", "entries": len(cache), "stats": dict(cache.stats)}


def overall_status(services: Dict[str, Dict[str, Any]]) -> str:
    """``degraded`` if any check is unhealthy; an unavailable docker daemon is not."""
    if any(check.get("status") == "unhealthy" for check in services.values()):
        return "degraded"
    return "healthy"


@router.get("", tags=["health"])
async def healthcheck(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    system, docker, cache = await asyncio.gather(
        service.system_monitor.check(),
        service.docker_monitor.check(),
        check_cache(service.cache),
    )
    services = {"system": system, "docker": docker, "cache": cache}
    return success(
        {
            "status": overall_status(services),
            "uptime": service.uptime(),
            "version": service.settings.version,
            "services": services,
            "bridge": service.status(),
            "failures": {
                "system": service.system_monitor.failures(),
                "docker": service.docker_monitor.failures(),
            },
        }
    )
