"""Admin summary endpoints: statistics and content discovery"""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from tokengate.api.dependencies import get_resolver, get_token_service, require_admin
from tokengate.api.models import SuccessResponse
from tokengate.core.content import ContentResolver
from tokengate.core.services import TokenAdminService

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_admin)])

RECENT_TOKEN_FIELDS = {"id", "client_name", "created_at", "is_active", "expires_at", "access_count"}
RECENT_ACCESS_FIELDS = {"id", "client_name", "last_accessed_at", "access_count"}


@router.get("/stats", response_model=SuccessResponse, summary="Token statistics")
async def get_stats(service: TokenAdminService = Depends(get_token_service)):
    summary = await service.statistics()
    return SuccessResponse(data={
        "stats": summary["stats"],
        "recent_tokens": [
            t.model_dump(mode="json", include=RECENT_TOKEN_FIELDS)
            for t in summary["recent_tokens"]
        ],
        "recent_accesses": [
            t.model_dump(mode="json", include=RECENT_ACCESS_FIELDS)
            for t in summary["recent_accesses"]
        ],
    })


@router.get("/projects", response_model=SuccessResponse, summary="Available content projects")
async def list_projects(resolver: ContentResolver = Depends(get_resolver)):
    return SuccessResponse(data=[asdict(p) for p in resolver.discover()])
