"""Errors raised by the admin API and rendered as JSON error bodies.

Visitor routes never surface these; denials there are redirects to the
access-restricted page.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    correlation_id: Optional[str] = None


class BaseAPIException(Exception):
    code = "TKG-500"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_error_response(self, correlation_id: Optional[str] = None) -> ErrorResponse:
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details,
            correlation_id=correlation_id,
        )


class ValidationError(BaseAPIException):
    code = "TKG-400"
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(BaseAPIException):
    code = "TKG-401"
    status_code = 401
    default_message = "Authentication required"


class NotFoundError(BaseAPIException):
    code = "TKG-404"
    status_code = 404

    def __init__(self, resource: str = "Resource", details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{resource} not found", details)


class RateLimitError(BaseAPIException):
    code = "TKG-429"
    status_code = 429
    default_message = "Rate limit exceeded"


class InternalServerError(BaseAPIException):
    pass


class ServiceUnavailableError(BaseAPIException):
    code = "TKG-503"
    status_code = 503
    default_message = "Service unavailable"


def error_code_for(status_code: int) -> str:
    """Error code for a bare HTTP status raised by the framework"""
    return f"TKG-{status_code}"
