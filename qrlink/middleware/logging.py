"""
Logging Middleware for Request/Response Logging

Logs every HTTP request with:
- Request method and path
- Response status code
- Request processing time
- Client IP address, redacted the same way scans store it

Design Decisions:
- Uses Starlette's BaseHTTPMiddleware for compatibility
- Logs to standard Python logging; handlers are configured in qrlink.main
- Query strings are not logged (target URLs may carry tokens)
"""

import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from qrlink.services.request_metadata import get_forwarded_ip, redact_ip

logger = logging.getLogger("qrlink")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    It wraps the request/response cycle to add logging without
    modifying endpoint code.
    """

    async def dispatch(self, request: Request, call_next):
        client_ip = self._get_client_ip(request)

        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time

        # Format: METHOD PATH STATUS_CODE PROCESS_TIME_MS CLIENT_IP
        logger.info(
            f"{request.method} {request.url.path} "
            f"{response.status_code} {process_time*1000:.2f}ms "
            f"IP:{client_ip}"
        )

        response.headers["X-Process-Time"] = str(process_time)

        return response

    def _get_client_ip(self, request: Request) -> str:
        """
        Redacted client address.

        Prefers the proxy headers (X-Forwarded-For, X-Real-IP) and falls
        back to the socket peer.
        """
        ip = get_forwarded_ip(request.headers)
        if not ip and request.client:
            ip = request.client.host
        return redact_ip(ip) if ip else "unknown"


def add_logging_middleware(app):
    """
    Add logging middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(LoggingMiddleware)
