"""Token storage contract with an in-memory implementation"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from tokengate.core.models import (
    ACCESS_LOG_LIMIT,
    AccessEvent,
    AccessLogBuffer,
    TokenRecord,
    TokenStatus,
    utc_now,
)
from tokengate.infrastructure.logging import get_logger

logger = get_logger(__name__)


class DuplicateTokenError(Exception):
    """Raised when a token value is already stored"""
    pass


class TokenStore(ABC):
    """Abstract base class for token record storage"""

    @abstractmethod
    async def find_by_token_value(self, value: str) -> Optional[TokenRecord]:
        """Find a record by exact token value"""
        pass

    @abstractmethod
    async def append_access_event(self, record_id: UUID, event: AccessEvent) -> bool:
        """Append an access event, trim the log, bump the counter; False if missing"""
        pass

    @abstractmethod
    async def create(self, record: TokenRecord) -> TokenRecord:
        pass

    @abstractmethod
    async def get(self, record_id: UUID) -> Optional[TokenRecord]:
        pass

    @abstractmethod
    async def list(
        self,
        status: TokenStatus = TokenStatus.ALL,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
    ) -> List[TokenRecord]:
        """List records newest first, without their access logs"""
        pass

    @abstractmethod
    async def count(self, status: TokenStatus = TokenStatus.ALL) -> int:
        pass

    @abstractmethod
    async def total_accesses(self) -> int:
        pass

    @abstractmethod
    async def update(self, record_id: UUID, changes: Dict[str, Any]) -> Optional[TokenRecord]:
        pass

    @abstractmethod
    async def delete(self, record_id: UUID) -> bool:
        pass


class InMemoryTokenStore(TokenStore):
    """In-memory token storage implementation"""

    IMMUTABLE_FIELDS = frozenset({"id", "token", "access_log", "access_count", "created_at"})

    def __init__(self, access_log_limit: int = ACCESS_LOG_LIMIT):
        self._records: Dict[UUID, TokenRecord] = {}
        self._by_token: Dict[str, UUID] = {}
        self._access_log_limit = access_log_limit
        self._lock = asyncio.Lock()

    async def find_by_token_value(self, value: str) -> Optional[TokenRecord]:
        record_id = self._by_token.get(value)
        if record_id is None:
            return None
        return self._records[record_id].model_copy(deep=True)

    async def append_access_event(self, record_id: UUID, event: AccessEvent) -> bool:
        async with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return False

            buffer = AccessLogBuffer(record.access_log, limit=self._access_log_limit)
            buffer.append(event)
            record.access_log = buffer.to_list()
            record.access_count += 1
            record.last_accessed_at = event.timestamp
            record.updated_at = utc_now()
            return True

    async def create(self, record: TokenRecord) -> TokenRecord:
        async with self._lock:
            if record.token in self._by_token:
                raise DuplicateTokenError("Token value already exists")
            now = utc_now()
            stored = record.model_copy(deep=True, update={"created_at": now, "updated_at": now})
            self._records[stored.id] = stored
            self._by_token[stored.token] = stored.id
            logger.debug("token_record_stored", record_id=str(stored.id))
            return stored.model_copy(deep=True)

    async def get(self, record_id: UUID) -> Optional[TokenRecord]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def list(
        self,
        status: TokenStatus = TokenStatus.ALL,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
    ) -> List[TokenRecord]:
        now = utc_now()
        records = [r for r in self._records.values() if r.matches_status(status, now)]
        if order_by == "last_accessed_at":
            records = [r for r in records if r.last_accessed_at is not None]
            records.sort(key=lambda r: r.last_accessed_at, reverse=True)
        else:
            records.sort(key=lambda r: r.created_at, reverse=True)
        return [
            r.model_copy(update={"access_log": []}, deep=True)
            for r in records[offset:offset + limit]
        ]

    async def count(self, status: TokenStatus = TokenStatus.ALL) -> int:
        now = utc_now()
        return sum(1 for r in self._records.values() if r.matches_status(status, now))

    async def total_accesses(self) -> int:
        return sum(r.access_count for r in self._records.values())

    async def update(self, record_id: UUID, changes: Dict[str, Any]) -> Optional[TokenRecord]:
        async with self._lock:
            record = self._records.get(record_id)
            if record is None:
                return None
            allowed = {k: v for k, v in changes.items() if k not in self.IMMUTABLE_FIELDS}
            updated = TokenRecord.model_validate(
                {**record.model_dump(), **allowed, "updated_at": utc_now()}
            )
            self._records[record_id] = updated
            return updated.model_copy(deep=True)

    async def delete(self, record_id: UUID) -> bool:
        async with self._lock:
            record = self._records.pop(record_id, None)
            if record is None:
                return False
            self._by_token.pop(record.token, None)
            return True
