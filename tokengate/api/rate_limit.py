"""Rate limiting for the visitor route using slowapi"""

import time
from contextvars import ContextVar
from typing import Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from tokengate.core.config import get_settings
from tokengate.core.exceptions import RateLimitError
from tokengate.infrastructure.logging import get_logger
from tokengate.infrastructure.logging_processors import redact_token_path
from tokengate.infrastructure.middleware.correlation import get_correlation_id
from tokengate.infrastructure.middleware.logging import get_client_ip, get_peer_ip

logger = get_logger(__name__)

_route_limit: ContextVar[Optional[str]] = ContextVar("token_route_limit", default=None)


def rate_limit_key(request: Request) -> str:
    """Peer address, or the forwarded client address behind a trusted proxy"""
    peer = get_peer_ip(request)
    if peer in request.app.state.settings.trusted_proxies:
        return get_client_ip(request)
    return peer


def create_limiter() -> Limiter:
    """Create and configure the rate limiter"""
    return Limiter(
        key_func=rate_limit_key,
        storage_uri="memory://",
        strategy="fixed-window",
        headers_enabled=False,
        swallow_errors=False,
    )


limiter = create_limiter()


async def bind_route_limit(request: Request) -> None:
    """Make the serving app's configured limit visible to token_route_limit"""
    _route_limit.set(request.app.state.settings.token_rate_limit)


def token_route_limit() -> str:
    return _route_limit.get() or get_settings().token_rate_limit


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    correlation_id = get_correlation_id(request)
    retry_after = 60

    logger.warning(
        "rate_limit_exceeded",
        path=redact_token_path(request.url.path),
        client_ip=rate_limit_key(request),
        limit=str(exc.detail),
    )

    error = RateLimitError(details={"retry_after": retry_after})
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error.to_error_response(correlation_id=correlation_id).model_dump(exclude_none=True),
        headers={
            "Retry-After": str(retry_after),
            "X-RateLimit-Reset": str(int(time.time()) + retry_after),
        },
    )
