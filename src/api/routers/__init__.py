"""HTTP router factory wiring health, system and docker endpoints under ``/api``."""

from fastapi import APIRouter, Depends

from api.dependencies import enforce_rate_limit, verify_bearer_token

from . import docker, health, system


def create_router() -> APIRouter:
    router = APIRouter(prefix="/api", dependencies=[Depends(enforce_rate_limit), Depends(verify_bearer_token)])
    router.include_router(health.router, prefix="/health")
    router.include_router(system.router, prefix="/system")
    router.include_router(docker.router, prefix="/docker")
    return router
