"""Container endpoints: daemon status, container list, per-container stats and logs."""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from api.dependencies import bridge_service_dependency
from api.responses import success
from bridge.service import BridgeService
from monitors.errors import InvalidQueryError
from utils.misc import parse_time_bound


router = APIRouter()

CONTAINER_ID_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9_.-]+$"
MAX_LOG_LINES = 10000


def _time_bound(name: str, value: Optional[str]) -> Optional[int]:
    try:
        return parse_time_bound(value)
    except ValueError as exc:
        raise InvalidQueryError(f"Invalid '{name}' parameter: {value!r}") from exc


@router.get("/status", tags=["docker"])
async def docker_status(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    return success(await service.docker_monitor.status())


@router.get("/containers", tags=["docker"])
async def list_containers(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    return success(await service.cached("docker:containers", service.docker_monitor.list_containers))


@router.get("/containers/{container_id}/stats", tags=["docker"])
async def container_stats(
    container_id: str = Path(..., pattern=CONTAINER_ID_PATTERN),
    service: BridgeService = Depends(bridge_service_dependency),
) -> dict:
    return success(await service.docker_monitor.get_container_stats(container_id))


@router.get("/containers/{container_id}/logs", tags=["docker"])
async def container_logs(
    container_id: str = Path(..., pattern=CONTAINER_ID_PATTERN),
    lines: int = Query(100, ge=1, le=MAX_LOG_LINES),
    since: Optional[str] = Query(None),
    until: Optional[str] = Query(None),
    service: BridgeService = Depends(bridge_service_dependency),
) -> dict:
    since_ts = _time_bound("since", since)
    until_ts = _time_bound("until", until)
    if since_ts is not None and until_ts is not None and since_ts > until_ts:
        raise InvalidQueryError("'since' must not be later than 'until'")
    logs = await service.docker_monitor.get_container_logs(container_id, lines=lines, since=since_ts, until=until_ts)
    return success(logs)
