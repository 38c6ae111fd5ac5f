"""Per-request correlation ids.

An id supplied in ``X-Correlation-ID`` is reused when it looks like an id;
anything else (overlong values, free text, pasted URLs) is replaced with a
fresh one, since the value is echoed in response headers, error bodies and
every log line of the request.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from tokengate.infrastructure.logging import bind_context, unbind_context

CORRELATION_HEADER = "X-Correlation-ID"

_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def resolve_correlation_id(supplied: Optional[str]) -> str:
    if supplied and _ACCEPTED_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id

        reset_token = correlation_id_var.set(correlation_id)
        bind_context(correlation_id=correlation_id)
        try:
            response = await call_next(request)
        finally:
            unbind_context("correlation_id")
            correlation_id_var.reset(reset_token)

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def get_correlation_id(request: Optional[Request] = None) -> Optional[str]:
    """Correlation id of the current request.

    Exception handlers that run outside the middleware (unhandled errors)
    pass the request so the id stored on its state is still found.
    """
    correlation_id = correlation_id_var.get()
    if correlation_id is None and request is not None:
        correlation_id = getattr(request.state, "correlation_id", None)
    return correlation_id
