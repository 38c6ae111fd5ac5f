"""SQL-backed token store used by the running service."""
from typing import Any, Dict, List, Optional
from uuid import UUID

from tokengate.core.access.storage import DuplicateTokenError, TokenStore
from tokengate.core.models import (
    ACCESS_LOG_LIMIT,
    AccessEvent,
    TokenRecord,
    TokenStatus,
    utc_now,
)
from tokengate.infrastructure.database.connection import DatabaseConnection
from tokengate.infrastructure.database.models import AccessTokenModel
from tokengate.infrastructure.database.repositories import RepositoryError, TokenRepository

UPDATABLE_FIELDS = frozenset({
    "client_name",
    "client_email",
    "allowed_pages",
    "allowed_domains",
    "expires_at",
    "is_active",
    "notes",
})


def to_record(model: AccessTokenModel, include_log: bool = True) -> TokenRecord:
    """Map a database row onto the domain record."""
    return TokenRecord(
        id=model.id,
        token=model.token,
        client_name=model.client_name,
        client_email=model.client_email,
        allowed_pages=list(model.allowed_pages or []),
        allowed_domains=list(model.allowed_domains or []),
        expires_at=model.expires_at,
        is_active=model.is_active,
        access_log=(
            [AccessEvent.model_validate(event) for event in model.access_events]
            if include_log else []
        ),
        access_count=model.access_count,
        last_accessed_at=model.last_accessed_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
        notes=model.notes,
    )


class SqlTokenStore(TokenStore):
    """Token store over an async SQLAlchemy connection.

    Each operation runs in its own session and transaction.
    """

    def __init__(self, db: DatabaseConnection, access_log_limit: int = ACCESS_LOG_LIMIT):
        self._db = db
        self._access_log_limit = access_log_limit

    async def find_by_token_value(self, value: str) -> Optional[TokenRecord]:
        async with self._db.get_session() as session:
            model = await TokenRepository(session).find_by_token(value)
            return to_record(model) if model else None

    async def append_access_event(self, record_id: UUID, event: AccessEvent) -> bool:
        async with self._db.get_session() as session:
            return await TokenRepository(session).record_access(
                record_id,
                timestamp=event.timestamp,
                page=event.page,
                ip=event.ip,
                user_agent=event.user_agent,
                retain=self._access_log_limit,
            )

    async def create(self, record: TokenRecord) -> TokenRecord:
        async with self._db.get_session() as session:
            repo = TokenRepository(session)
            if await repo.find_by_token(record.token) is not None:
                raise DuplicateTokenError("Token value already exists")

            model = AccessTokenModel(
                id=record.id,
                token=record.token,
                client_name=record.client_name,
                client_email=record.client_email,
                allowed_pages=list(record.allowed_pages),
                allowed_domains=list(record.allowed_domains),
                expires_at=record.expires_at,
                is_active=record.is_active,
                access_count=0,
                notes=record.notes,
            )
            try:
                await repo.save(model)
            except RepositoryError as e:
                raise DuplicateTokenError("Token value already exists") from e
            created = await repo.find_with_events(model.id)
            return to_record(created)

    async def get(self, record_id: UUID) -> Optional[TokenRecord]:
        async with self._db.get_session() as session:
            model = await TokenRepository(session).find_with_events(record_id)
            return to_record(model) if model else None

    async def list(
        self,
        status: TokenStatus = TokenStatus.ALL,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
    ) -> List[TokenRecord]:
        async with self._db.get_session() as session:
            models = await TokenRepository(session).find_many(
                status, utc_now(), offset=offset, limit=limit, order_by=order_by
            )
            return [to_record(m, include_log=False) for m in models]

    async def count(self, status: TokenStatus = TokenStatus.ALL) -> int:
        async with self._db.get_session() as session:
            return await TokenRepository(session).count(status, utc_now())

    async def total_accesses(self) -> int:
        async with self._db.get_session() as session:
            return await TokenRepository(session).total_accesses()

    async def update(self, record_id: UUID, changes: Dict[str, Any]) -> Optional[TokenRecord]:
        values = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        async with self._db.get_session() as session:
            repo = TokenRepository(session)
            if not await repo.update_fields(record_id, values):
                return None
            model = await repo.find_with_events(record_id)
            return to_record(model) if model else None

    async def delete(self, record_id: UUID) -> bool:
        async with self._db.get_session() as session:
            return await TokenRepository(session).delete(record_id)
