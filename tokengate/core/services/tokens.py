"""Administrative token operations shared by the admin API and the CLI"""

import math
from datetime import timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from tokengate.core.access.storage import DuplicateTokenError, TokenStore
from tokengate.core.models import (
    TokenCreate,
    TokenRecord,
    TokenStatus,
    TokenUpdate,
    utc_now,
)
from tokengate.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EXTEND_DAYS = 30
RECENT_LIMIT = 5
MAX_TOKEN_ATTEMPTS = 3


class TokenNotFoundError(Exception):
    pass


class TokenAdminService:
    """Issue, inspect and manage token records"""

    def __init__(self, store: TokenStore, default_expiration_days: int = 30):
        self.store = store
        self.default_expiration_days = default_expiration_days

    async def issue(self, request: TokenCreate) -> TokenRecord:
        if request.expires_at is not None:
            expires_at = request.expires_at
        else:
            days = request.expiration_days or self.default_expiration_days
            expires_at = utc_now() + timedelta(days=days)

        for attempt in range(MAX_TOKEN_ATTEMPTS):
            record = TokenRecord(
                client_name=request.client_name,
                client_email=request.client_email,
                allowed_pages=request.allowed_pages,
                allowed_domains=request.allowed_domains,
                expires_at=expires_at,
                is_active=True,
                notes=request.notes,
            )
            try:
                created = await self.store.create(record)
            except DuplicateTokenError:
                logger.warning("token_value_collision", attempt=attempt + 1)
                continue

            logger.info(
                "token_issued",
                record_id=str(created.id),
                client_name=created.client_name,
                allowed_pages=created.allowed_pages,
                expires_at=created.expires_at.isoformat(),
            )
            return created

        raise RuntimeError("Could not generate a unique token value")

    async def get(self, record_id: UUID) -> TokenRecord:
        record = await self.store.get(record_id)
        if record is None:
            raise TokenNotFoundError(str(record_id))
        return record

    async def list(
        self,
        status: TokenStatus = TokenStatus.ALL,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        offset = (page - 1) * limit
        tokens = await self.store.list(status=status, offset=offset, limit=limit)
        total = await self.store.count(status)
        return {
            "tokens": tokens,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    async def update(self, record_id: UUID, update: TokenUpdate) -> TokenRecord:
        changes = update.changes()
        record = await self.store.update(record_id, changes)
        if record is None:
            raise TokenNotFoundError(str(record_id))
        logger.info("token_updated", record_id=str(record_id), fields=sorted(changes))
        return record

    async def set_active(self, record_id: UUID, active: bool) -> TokenRecord:
        return await self.update(record_id, TokenUpdate(is_active=active))

    async def extend(self, record_id: UUID, days: Optional[int] = None) -> TokenRecord:
        record = await self.get(record_id)
        expires_at = record.expires_at + timedelta(days=days or DEFAULT_EXTEND_DAYS)
        return await self.update(record_id, TokenUpdate(expires_at=expires_at))

    async def delete(self, record_id: UUID) -> None:
        if not await self.store.delete(record_id):
            raise TokenNotFoundError(str(record_id))
        logger.info("token_deleted", record_id=str(record_id))

    async def statistics(self) -> Dict[str, Any]:
        stats = {
            "total": await self.store.count(TokenStatus.ALL),
            "active": await self.store.count(TokenStatus.ACTIVE),
            "expired": await self.store.count(TokenStatus.EXPIRED),
            "inactive": await self.store.count(TokenStatus.INACTIVE),
            "expiring_soon": await self.store.count(TokenStatus.EXPIRING_SOON),
            "total_accesses": await self.store.total_accesses(),
        }
        recent_tokens: List[TokenRecord] = await self.store.list(limit=RECENT_LIMIT)
        recent_accesses: List[TokenRecord] = await self.store.list(
            limit=RECENT_LIMIT, order_by="last_accessed_at"
        )
        return {
            "stats": stats,
            "recent_tokens": recent_tokens,
            "recent_accesses": recent_accesses,
        }
