"""FastAPI dependencies resolving the collaborators created at startup"""

import secrets
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tokengate.core.access import AccessValidator
from tokengate.core.config import Settings
from tokengate.core.content import ContentResolver
from tokengate.core.exceptions import AuthenticationError, ServiceUnavailableError
from tokengate.core.services import TokenAdminService
from tokengate.infrastructure.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(
    scheme_name="AdminKey",
    description="Admin API key presented as a Bearer token",
    auto_error=False,
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_validator(request: Request) -> AccessValidator:
    return request.app.state.validator


def get_resolver(request: Request) -> ContentResolver:
    return request.app.state.resolver


def get_token_service(request: Request) -> TokenAdminService:
    return request.app.state.token_service


async def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject admin API calls that do not carry the configured admin key"""
    if not settings.admin_api_enabled:
        logger.warning("admin_api_disabled", path=request.url.path)
        raise ServiceUnavailableError("Admin API is not configured")

    if credentials is None or not credentials.credentials:
        logger.warning("admin_auth_missing", path=request.url.path)
        raise AuthenticationError("Missing admin credentials")

    if not secrets.compare_digest(
        credentials.credentials.encode(), settings.admin_api_key.encode()
    ):
        logger.warning("admin_auth_invalid", path=request.url.path)
        raise AuthenticationError("Invalid admin credentials")
