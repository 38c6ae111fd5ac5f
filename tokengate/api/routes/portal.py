"""Visitor-facing routes: protected pages and the access-restricted page"""

import html
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from tokengate.api.dependencies import get_resolver, get_validator
from tokengate.api.rate_limit import bind_route_limit, limiter, token_route_limit
from tokengate.core.access import (
    DEFAULT_REASON,
    AccessValidator,
    ContentFailure,
    RequestMetadata,
    message_for,
)
from tokengate.core.content import (
    ContentConfigurationError,
    ContentResolver,
    ExternalRedirect,
)
from tokengate.infrastructure.logging import get_logger
from tokengate.infrastructure.metrics import record_content
from tokengate.infrastructure.middleware.logging import get_client_ip

logger = get_logger(__name__)
router = APIRouter(tags=["portal"])

RESTRICTED_PATH = "/access-restricted"
NO_INDEX = {"X-Robots-Tag": "noindex, nofollow"}

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="robots" content="noindex, nofollow">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
</head>
<body>
<div class="min-h-screen">
<div class="protected-content">{content}</div>
</div>
</body>
</html>
"""

RESTRICTED_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="robots" content="noindex, nofollow">
<title>{title}</title>
</head>
<body>
<main class="access-restricted" data-reason="{reason}">
<h1>{title}</h1>
<p>{description}</p>
</main>
</body>
</html>
"""


def page_title(page: str) -> str:
    name = page or "Protected"
    return f"{name[:1].upper()}{name[1:]} - Secure Access"


def restricted_redirect(reason: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{RESTRICTED_PATH}?{urlencode({'reason': reason})}",
        status_code=303,
    )


def request_metadata(request: Request) -> RequestMetadata:
    return RequestMetadata(
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        host=request.headers.get("host"),
    )


@router.get(
    "/t/{token}/{page:path}",
    response_class=HTMLResponse,
    include_in_schema=False,
    dependencies=[Depends(bind_route_limit)],
)
@limiter.limit(token_route_limit)
async def protected_page(
    request: Request,
    token: str,
    page: str,
    validator: AccessValidator = Depends(get_validator),
    resolver: ContentResolver = Depends(get_resolver),
):
    """Serve a protected page if the token grants access to it"""
    page_name = page.split("/")[0]

    result = await validator.validate(token, page_name, request_metadata(request))
    if not result.valid:
        return restricted_redirect(result.reason.value)

    try:
        resolved = await resolver.resolve(page_name)
    except ContentConfigurationError:
        record_content(ContentFailure.CONFIGURATION_ERROR.value)
        return restricted_redirect(ContentFailure.CONFIGURATION_ERROR.value)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("content_load_failed", page=result.page, error=str(e))
        record_content(ContentFailure.PAGE_NOT_FOUND.value)
        return restricted_redirect(ContentFailure.PAGE_NOT_FOUND.value)

    if resolved is None:
        record_content(ContentFailure.PAGE_NOT_FOUND.value)
        return restricted_redirect(ContentFailure.PAGE_NOT_FOUND.value)

    if isinstance(resolved, ExternalRedirect):
        record_content("external")
        return RedirectResponse(url=resolved.url, status_code=307)

    record_content("served")
    return HTMLResponse(
        content=PAGE_TEMPLATE.format(
            title=html.escape(page_title(page_name)),
            content=resolved.html,
        ),
        headers=NO_INDEX,
    )


def render_restricted(reason: Optional[str], status_code: int = 403) -> HTMLResponse:
    message = message_for(reason)
    return HTMLResponse(
        content=RESTRICTED_TEMPLATE.format(
            title=html.escape(message.title),
            description=html.escape(message.description),
            reason=html.escape(reason or DEFAULT_REASON),
        ),
        status_code=status_code,
        headers=NO_INDEX,
    )


@router.get(RESTRICTED_PATH, response_class=HTMLResponse, include_in_schema=False)
async def access_restricted(reason: Optional[str] = Query(None)):
    """Explain why access was refused"""
    return render_restricted(reason)
