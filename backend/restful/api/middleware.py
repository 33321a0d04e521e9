"""
HTTP middleware shared by every app built with ``create_app``.
"""

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from restful.core.logging import get_logger

logger = get_logger("restful.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log.
    Logs every request, or only error responses (status >= 400) when
    ``errors_only`` is set, which is how production apps run it.
    """
    
    def __init__(self, app: ASGIApp, errors_only: bool = False):
        super().__init__(app)
        self.errors_only = errors_only
    
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            # Unhandled errors are answered by the outermost error middleware
            # after this one has unwound, the client still receives a 500.
            self._log(request, 500, started)
            raise
        
        if not (self.errors_only and response.status_code < 400):
            self._log(request, response.status_code, started)
        return response
    
    def _log(self, request: Request, status_code: int, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        client = request.client.host if request.client else "-"
        logger.info(
            f"{request.method} {request.url.path} {status_code} {elapsed_ms:.1f} ms",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "client": client,
                "duration_ms": round(elapsed_ms, 1),
            },
        )
