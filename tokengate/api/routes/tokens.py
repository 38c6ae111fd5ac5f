"""Token management API endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tokengate.api.dependencies import get_token_service, require_admin
from tokengate.api.models import SuccessResponse, TokenActionRequest
from tokengate.core.exceptions import NotFoundError
from tokengate.core.models import TokenCreate, TokenStatus, TokenUpdate
from tokengate.core.services import TokenAdminService, TokenNotFoundError
from tokengate.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(
    prefix="/tokens",
    tags=["tokens"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=SuccessResponse, summary="List tokens")
async def list_tokens(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: TokenStatus = Query(TokenStatus.ALL, alias="status"),
    service: TokenAdminService = Depends(get_token_service),
):
    """List tokens newest first, without access logs"""
    result = await service.list(status=status_filter, page=page, limit=limit)
    return SuccessResponse(data={
        "tokens": [t.to_summary() for t in result["tokens"]],
        "pagination": result["pagination"],
    })


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create token",
)
async def create_token(
    request: TokenCreate,
    service: TokenAdminService = Depends(get_token_service),
):
    """Issue a new access token"""
    record = await service.issue(request)
    return SuccessResponse(data={
        "token": record.model_dump(mode="json"),
        "access_url": f"/t/{record.token}",
    })


@router.get("/{token_id}", response_model=SuccessResponse, summary="Get token details")
async def get_token(
    token_id: UUID,
    service: TokenAdminService = Depends(get_token_service),
):
    try:
        record = await service.get(token_id)
    except TokenNotFoundError:
        raise NotFoundError("Token")
    return SuccessResponse(data=record.model_dump(mode="json"))


@router.put("/{token_id}", response_model=SuccessResponse, summary="Update token")
async def update_token(
    token_id: UUID,
    request: TokenUpdate,
    service: TokenAdminService = Depends(get_token_service),
):
    try:
        record = await service.update(token_id, request)
    except TokenNotFoundError:
        raise NotFoundError("Token")
    return SuccessResponse(data=record.model_dump(mode="json"))


@router.delete("/{token_id}", response_model=SuccessResponse, summary="Delete token")
async def delete_token(
    token_id: UUID,
    service: TokenAdminService = Depends(get_token_service),
):
    try:
        await service.delete(token_id)
    except TokenNotFoundError:
        raise NotFoundError("Token")
    return SuccessResponse(message="Token deleted successfully")


@router.patch("/{token_id}", response_model=SuccessResponse, summary="Token quick actions")
async def token_action(
    token_id: UUID,
    request: TokenActionRequest,
    service: TokenAdminService = Depends(get_token_service),
):
    """Activate, deactivate or extend a token"""
    try:
        if request.action == "extend":
            record = await service.extend(token_id, request.days)
        else:
            record = await service.set_active(token_id, request.action == "activate")
    except TokenNotFoundError:
        raise NotFoundError("Token")

    logger.info("token_action_applied", record_id=str(token_id), action=request.action)
    return SuccessResponse(data=record.model_dump(mode="json"))
