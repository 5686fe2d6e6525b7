# app/core/middleware.py
"""
Middleware HTTP : request_id + log d'accès.

Chaque requête reçoit un request_id (repris de X-Request-ID s'il est
fourni) posé dans le ContextVar de logging_config : tous les logs émis
pendant la requête le portent. Il est renvoyé dans X-Request-ID.
"""
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging_config import generate_request_id, logger, set_request_id

SKIP_PATHS = {"/health", "/docs", "/openapi.json"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request_id
        if request.url.path not in SKIP_PATHS:
            logger.info(
                f"{request.method} {request.url.path} → {response.status_code} ({duration_ms:.1f}ms)"
            )
        return response
