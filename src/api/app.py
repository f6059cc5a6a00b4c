"""FastAPI application factory wiring the bridge service into HTTP and WebSocket routes."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from api.errors import register_exception_handlers
from api.middleware import RequestContextMiddleware, setup_cors, setup_rate_limiting
from api.routers import create_router
from api.websockets import register_websockets
from bridge.service import BridgeService
from configs.settings import BridgeSettings


def create_app(settings: Optional[BridgeSettings] = None, *, service: Optional[BridgeService] = None) -> FastAPI:
    """Build the application around one :class:`BridgeService`.

    :param settings: Configuration; read from the environment when omitted.
    :param service: Pre-built service, e.g. one wired with fake monitors.
    """
    if settings is None:
        settings = service.settings if service is not None else BridgeSettings.from_env()
    if service is None:
        service = BridgeService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await service.startup()
        try:
            yield
        finally:
            await service.shutdown()

    app = FastAPI(title="Edge Metrics Bridge API", version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.bridge = service

    register_exception_handlers(app)
    setup_rate_limiting(app, settings)
    # Added innermost first: CORS wraps request logging.
    app.add_middleware(RequestContextMiddleware)
    setup_cors(app, settings)

    app.include_router(create_router())
    register_websockets(app, settings.ws_path)
    return app
