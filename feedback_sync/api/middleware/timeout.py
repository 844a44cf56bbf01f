"""
Per-request deadline for the feedback API.

A submission that hangs on PostgreSQL or a report that stalls on the
report store is cut off with 504. Health and metrics paths are never cut off.
"""

import asyncio
from collections.abc import Iterable

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

DEFAULT_EXEMPT_PATHS = ("/health", "/metrics")

TIMEOUT_BODY = {"detail": "Request timed out", "error_type": "timeout"}


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when a request outlives ``timeout_seconds``."""

    def __init__(
        self,
        app,
        timeout_seconds: float = 30.0,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
    ):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds
        self.exempt_paths = tuple(exempt_paths)

    def is_exempt(self, path: str) -> bool:
        return path.startswith(self.exempt_paths)

    async def dispatch(self, request: Request, call_next):
        if self.is_exempt(request.url.path):
            return await call_next(request)

        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await call_next(request)
        except TimeoutError:
            logger.warning(
                "Request exceeded deadline",
                method=request.method,
                path=request.url.path,
                timeout_seconds=self.timeout_seconds,
            )
            return JSONResponse(status_code=504, content=TIMEOUT_BODY)
