"""Token validation and access control.

Every visitor request is checked by :class:`AccessValidator` in a fixed
order: existence, active flag, expiration, domain restriction, page scope.
The first failing check decides the denial reason. Denials are returned as
values, never raised.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from pydantic import BaseModel

from tokengate.core.access.reasons import DenialReason
from tokengate.core.access.storage import TokenStore
from tokengate.core.models import (
    WILDCARD_PAGE,
    AccessEvent,
    TokenRecord,
    normalize_page,
    utc_now,
)
from tokengate.infrastructure.logging import get_logger
from tokengate.infrastructure.metrics import record_validation

logger = get_logger(__name__)


@dataclass(frozen=True)
class RequestMetadata:
    """Requester details; supplying them turns on access logging"""
    ip: str = "unknown"
    user_agent: Optional[str] = None
    host: Optional[str] = None


class ValidationResult(BaseModel):
    """Result of token validation"""
    valid: bool
    token: Optional[TokenRecord] = None
    reason: Optional[DenialReason] = None
    page: Optional[str] = None

    @classmethod
    def authorized(cls, token: TokenRecord, page: str) -> "ValidationResult":
        return cls(valid=True, token=token, page=page)

    @classmethod
    def denied(cls, reason: DenialReason) -> "ValidationResult":
        return cls(valid=False, reason=reason)


def host_allowed(host: str, allowed_domains: Iterable[str]) -> bool:
    """Exact match or subdomain of any allowed domain"""
    return any(
        host == domain or host.endswith("." + domain)
        for domain in allowed_domains
    )


def page_allowed(normalized_page: str, allowed_pages: Iterable[str]) -> bool:
    allowed = {normalize_page(p) for p in allowed_pages}
    return normalized_page in allowed or WILDCARD_PAGE in allowed


class AccessValidator:
    """Decides whether a presented token grants access to a page"""

    def __init__(self, store: TokenStore, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._clock = clock

    def check(
        self,
        record: Optional[TokenRecord],
        page: str,
        host: Optional[str],
        now: datetime,
    ) -> Optional[DenialReason]:
        """Run the checks against an already loaded record.

        Returns the first failing reason, or None when access is granted.
        """
        if record is None:
            return DenialReason.TOKEN_NOT_FOUND

        if not record.is_active:
            return DenialReason.TOKEN_INACTIVE

        if now > record.expires_at:
            return DenialReason.TOKEN_EXPIRED

        # Empty allowed_domains leaves the token usable from any host
        if host and record.allowed_domains:
            if not host_allowed(host, record.allowed_domains):
                return DenialReason.DOMAIN_NOT_ALLOWED

        if not page_allowed(normalize_page(page), record.allowed_pages):
            return DenialReason.PAGE_NOT_ALLOWED

        return None

    async def validate(
        self,
        token_value: str,
        page: str,
        metadata: Optional[RequestMetadata] = None,
    ) -> ValidationResult:
        """Validate a token for a page.

        Args:
            token_value: Raw token taken from the request path
            page: Requested page identifier, optionally with an .html suffix
            metadata: Requester details; when given, a successful validation
                is recorded in the token's access log

        Returns:
            ValidationResult carrying the record or the denial reason
        """
        try:
            record = await self._store.find_by_token_value(token_value)
            now = self._clock()
            reason = self.check(record, page, metadata.host if metadata else None, now)
        except Exception as e:
            logger.error(
                "token_validation_error",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return self._deny(DenialReason.TOKEN_NOT_FOUND)

        if reason is not None:
            return self._deny(reason, record_id=record.id if record else None)

        normalized_page = normalize_page(page)
        if metadata is not None:
            await self._log_access(record, normalized_page, metadata, now)

        record_validation("authorized")
        logger.info(
            "token_validation_authorized",
            record_id=str(record.id),
            page=normalized_page,
            logged=metadata is not None,
        )
        return ValidationResult.authorized(record, normalized_page)

    async def _log_access(
        self,
        record: TokenRecord,
        normalized_page: str,
        metadata: RequestMetadata,
        now: datetime,
    ) -> None:
        event = AccessEvent(
            timestamp=now,
            page=normalized_page,
            ip=metadata.ip,
            user_agent=metadata.user_agent,
        )
        try:
            appended = await self._store.append_access_event(record.id, event)
        except Exception as e:
            logger.warning(
                "access_log_append_failed",
                record_id=str(record.id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        if not appended:
            logger.warning("access_log_record_missing", record_id=str(record.id))

    def _deny(self, reason: DenialReason, record_id=None) -> ValidationResult:
        record_validation(reason.value)
        logger.info(
            "token_validation_denied",
            reason=reason.value,
            record_id=str(record_id) if record_id else None,
        )
        return ValidationResult.denied(reason)
