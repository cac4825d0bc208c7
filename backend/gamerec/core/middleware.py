"""
Request logging middleware.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gamerec.core.logging import get_logger, request_id_var, user_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probes hit these constantly; only failures are logged
QUIET_PATHS = frozenset({"/health", "/health/ready"})


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id and log its outcome.

    A client-supplied X-Request-ID is reused so traces line up with the
    frontend; otherwise a fresh one is generated. The id is echoed back in
    the response headers together with the handling time.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request_id_var.set(request_id)
        user_id_var.set(None)

        route = f"{request.method} {request.url.path}"
        quiet = request.url.path in QUIET_PATHS

        if not quiet:
            logger.debug(
                f"-> {route}",
                extra={
                    "extra_fields": {
                        "query": str(request.query_params) or None,
                        "client_ip": request.client.host if request.client else None,
                        "authenticated": "authorization" in request.headers,
                    }
                },
            )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{route} raised {type(e).__name__}",
                extra={"extra_fields": {"duration_ms": _elapsed_ms(start)}},
                exc_info=True,
            )
            raise

        duration_ms = _elapsed_ms(start)
        if not quiet or response.status_code >= 500:
            logger.log(
                _level_for(response.status_code),
                f"{route} {response.status_code}",
                extra={
                    "extra_fields": {
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    }
                },
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
