"""Exception handlers rendering every failure as ``{error, timestamp}``."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.responses import error_body
from monitors.errors import BridgeError
from utils.logger_factory import log_exception


def _logger(request: Request):
    service = getattr(request.app.state, "bridge", None)
    return service.logger if service is not None else None


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger = _logger(request)
    if logger is not None:
        logger.warning(f"Validation failed for {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", details=jsonable_encoder(exc.errors())),
    )


async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    logger = _logger(request)
    if logger is not None:
        line = f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}"
        if exc.status_code >= 500:
            logger.error(line)
        else:
            logger.warning(line)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger = _logger(request)
    if logger is not None:
        log_exception(logger, exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BridgeError, bridge_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
