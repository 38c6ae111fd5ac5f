"""Access token data access repository."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tokengate.core.models import EXPIRING_SOON_WINDOW, TokenStatus
from tokengate.infrastructure.database.models import AccessEventModel, AccessTokenModel
from tokengate.infrastructure.database.repositories.base import BaseRepository


def status_clause(status: TokenStatus, now: datetime):
    """SQL filter matching TokenRecord.matches_status."""
    if status == TokenStatus.ACTIVE:
        return and_(AccessTokenModel.is_active.is_(True), AccessTokenModel.expires_at > now)
    if status == TokenStatus.INACTIVE:
        return AccessTokenModel.is_active.is_(False)
    if status == TokenStatus.EXPIRED:
        return AccessTokenModel.expires_at <= now
    if status == TokenStatus.EXPIRING_SOON:
        return and_(
            AccessTokenModel.is_active.is_(True),
            AccessTokenModel.expires_at > now,
            AccessTokenModel.expires_at <= now + EXPIRING_SOON_WINDOW,
        )
    return None


class TokenRepository(BaseRepository[AccessTokenModel]):
    """Access token data access only."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AccessTokenModel)

    async def find_by_token(self, value: str) -> Optional[AccessTokenModel]:
        """Find token by exact value, with its access log."""
        stmt = (
            select(AccessTokenModel)
            .options(selectinload(AccessTokenModel.access_events))
            .execution_options(populate_existing=True)
            .where(AccessTokenModel.token == value)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_with_events(self, id: UUID) -> Optional[AccessTokenModel]:
        stmt = (
            select(AccessTokenModel)
            .options(selectinload(AccessTokenModel.access_events))
            .execution_options(populate_existing=True)
            .where(AccessTokenModel.id == id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_many(
        self,
        status: TokenStatus,
        now: datetime,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
    ) -> List[AccessTokenModel]:
        stmt = select(AccessTokenModel)
        clause = status_clause(status, now)
        if clause is not None:
            stmt = stmt.where(clause)
        if order_by == "last_accessed_at":
            stmt = stmt.where(AccessTokenModel.last_accessed_at.is_not(None)).order_by(
                AccessTokenModel.last_accessed_at.desc()
            )
        else:
            stmt = stmt.order_by(AccessTokenModel.created_at.desc())
        stmt = stmt.offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, status: TokenStatus, now: datetime) -> int:
        stmt = select(func.count()).select_from(AccessTokenModel)
        clause = status_clause(status, now)
        if clause is not None:
            stmt = stmt.where(clause)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def total_accesses(self) -> int:
        stmt = select(func.coalesce(func.sum(AccessTokenModel.access_count), 0))
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def record_access(
        self,
        id: UUID,
        timestamp: datetime,
        page: str,
        ip: str,
        user_agent: Optional[str],
        retain: int,
    ) -> bool:
        """Append one access event and keep only the newest `retain` events.

        The counter is incremented in SQL so concurrent accesses to the same
        token never lose an increment.
        """
        stmt = (
            update(AccessTokenModel)
            .where(AccessTokenModel.id == id)
            .values(
                access_count=AccessTokenModel.access_count + 1,
                last_accessed_at=timestamp,
            )
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return False

        self.session.add(AccessEventModel(
            token_id=id,
            timestamp=timestamp,
            page=page,
            ip=ip,
            user_agent=user_agent,
        ))
        await self.session.flush()

        newest = (
            select(AccessEventModel.id)
            .where(AccessEventModel.token_id == id)
            .order_by(AccessEventModel.id.desc())
            .limit(retain)
        )
        await self.session.execute(
            delete(AccessEventModel)
            .where(
                AccessEventModel.token_id == id,
                AccessEventModel.id.not_in(newest),
            )
            .execution_options(synchronize_session=False)
        )
        return True

    async def update_fields(self, id: UUID, changes: Dict[str, Any]) -> bool:
        if not changes:
            return await self.find_by_id(id) is not None
        stmt = (
            update(AccessTokenModel)
            .where(AccessTokenModel.id == id)
            .values(**changes)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def delete(self, id: UUID) -> bool:
        await self.session.execute(
            delete(AccessEventModel).where(AccessEventModel.token_id == id)
        )
        result = await self.session.execute(
            delete(AccessTokenModel).where(AccessTokenModel.id == id)
        )
        return result.rowcount > 0
