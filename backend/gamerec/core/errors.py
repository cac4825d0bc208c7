"""
Error types and the exception handlers that render them.

Every error leaves the API in the same envelope:

    {"success": false, "statusCode": 404, "message": "...",
     "path": "/games/1", "method": "GET", "timestamp": "..."}

Client errors keep their 4xx status, catalog failures become 502 with the
upstream status attached, and anything unhandled becomes a generic 500.
"""

from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gamerec.core.logging import get_logger

logger = get_logger(__name__)


class CatalogAPIError(Exception):
    """The game catalog was unreachable or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_body(request: Request, status_code: int, message: Any, **extra: Any) -> dict:
    body = {
        "success": False,
        "statusCode": status_code,
        "message": message,
        "path": request.url.path,
        "method": request.method,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
    body.update(extra)
    return body


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation failed",
            errors=jsonable_encoder(exc.errors()),
        ),
    )


async def catalog_exception_handler(request: Request, exc: CatalogAPIError) -> JSONResponse:
    logger.error(
        f"Catalog request failed: {exc.message}",
        extra={"extra_fields": {"upstream_status": exc.status_code, "path": request.url.path}},
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=error_body(
            request,
            status.HTTP_502_BAD_GATEWAY,
            exc.message,
            upstreamStatus=exc.status_code,
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(CatalogAPIError, catalog_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
