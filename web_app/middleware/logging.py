"""Request logging middleware."""

import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from dynqr.common.logging_config import get_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request: method, path, client, status and duration.

    Query strings and bodies are never logged; they may carry contact details.
    """

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or get_logger("web")

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            self.logger.error(
                f"{request.method} {request.url.path} from {client_ip} failed after {duration_ms:.2f}ms"
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        self.logger.log(
            level,
            f"{request.method} {request.url.path} from {client_ip} - "
            f"{response.status_code} in {duration_ms:.2f}ms",
        )

        return response
