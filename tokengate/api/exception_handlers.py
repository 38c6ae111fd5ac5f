"""Error rendering.

Admin API errors are JSON bodies ``{success, code, message, details,
correlation_id}``. Errors on visitor paths (``/t/...``) render the
access-restricted page instead, so a visitor never sees a JSON body or a
stack trace. Logged paths always have the token masked.
"""

from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from tokengate.api.routes.portal import render_restricted
from tokengate.core.access import DEFAULT_REASON, ContentFailure
from tokengate.core.exceptions import (BaseAPIException, InternalServerError,
                                       ValidationError, error_code_for)
from tokengate.infrastructure.logging import get_logger
from tokengate.infrastructure.logging_processors import redact_token_path
from tokengate.infrastructure.middleware.correlation import (CORRELATION_HEADER,
                                                             get_correlation_id)
from tokengate.infrastructure.middleware.logging import is_visitor_path

logger = get_logger(__name__)


def request_fields(request: Request) -> Dict[str, Any]:
    return {"method": request.method, "path": redact_token_path(request.url.path)}


def json_error(request: Request, exc: BaseAPIException) -> JSONResponse:
    correlation_id = get_correlation_id(request)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_error_response(correlation_id=correlation_id).model_dump(exclude_none=True),
        headers={CORRELATION_HEADER: correlation_id} if correlation_id else {},
    )


async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    logger.warning(
        "api_exception",
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        **request_fields(request),
    )
    return json_error(request, exc)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("validation_error", errors=errors, **request_fields(request))
    return json_error(
        request, ValidationError("Request validation failed", details={"errors": errors})
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        **request_fields(request),
    )

    if is_visitor_path(request.url.path):
        return render_restricted(DEFAULT_REASON, status_code=exc.status_code)

    error = BaseAPIException(str(exc.detail))
    error.code = error_code_for(exc.status_code)
    error.status_code = exc.status_code
    return json_error(request, error)


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
        **request_fields(request),
    )

    if is_visitor_path(request.url.path):
        return render_restricted(ContentFailure.CONFIGURATION_ERROR.value, status_code=500)

    settings = request.app.state.settings
    details = None if settings.is_production else {"error_type": type(exc).__name__}
    return json_error(request, InternalServerError("An unexpected error occurred", details))
