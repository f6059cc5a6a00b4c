"""Host metrics endpoints backed by the request cache."""

from fastapi import APIRouter, Depends

from api.dependencies import bridge_service_dependency
from api.responses import success
from bridge.service import BridgeService


router = APIRouter()


@router.get("/overview", tags=["system"])
async def system_overview(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    return success(await service.cached("system:overview", service.system_monitor.get_overview))


@router.get("/cpu", tags=["system"])
async def system_cpu(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    return success(await service.cached("system:cpu", service.system_monitor.get_cpu))


@router.get("/memory", tags=["system"])
async def system_memory(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    return success(await service.cached("system:memory", service.system_monitor.get_memory))


@router.get("/disk", tags=["system"])
async def system_disk(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    return success(await service.cached("system:disk", service.system_monitor.get_disk))


@router.get("/network", tags=["system"])
async def system_network(service: BridgeService = Depends(bridge_service_dependency)) -> dict:
    return success(await service.cached("system:network", service.system_monitor.get_network))
