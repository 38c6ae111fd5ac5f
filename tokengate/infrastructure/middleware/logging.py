import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from tokengate.infrastructure.logging import bind_context, get_logger, unbind_context
from tokengate.infrastructure.logging_processors import redact_token_path
from tokengate.infrastructure.metrics import http_request_duration_seconds

logger = get_logger(__name__)

VISITOR_PREFIX = "/t/"


def is_visitor_path(path: str) -> bool:
    return path.startswith(VISITOR_PREFIX)


def get_client_ip(request: Request) -> str:
    """Client address as reported by forwarding proxies, else the peer.

    Recorded in access events. Callers that need an address the client
    cannot choose use get_peer_ip.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_peer_ip(request)


def get_peer_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging middleware"""

    def __init__(self, app):
        super().__init__(app)
        self.exclude_paths = {"/health", "/ready", "/metrics"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        start_time = time.time()
        path = redact_token_path(request.url.path)

        bind_context(
            request_method=request.method,
            request_path=path,
            client_ip=get_client_ip(request),
        )

        logger.info("http_request_started", method=request.method, path=path)

        try:
            response = await call_next(request)

            duration = time.time() - start_time
            endpoint = "/t/{token}" if is_visitor_path(path) else path
            http_request_duration_seconds.labels(
                method=request.method,
                endpoint=endpoint,
                status=str(response.status_code),
            ).observe(duration)

            logger.info(
                "http_request_completed",
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            response.headers["X-Response-Time"] = f"{round(duration * 1000, 2)}ms"
            return response

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                "http_request_failed",
                duration_ms=round(duration * 1000, 2),
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )
            raise

        finally:
            unbind_context("request_method", "request_path", "client_ip")
