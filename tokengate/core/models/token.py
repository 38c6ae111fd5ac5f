import re
import secrets
import string
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

TOKEN_LENGTH = 64
TOKEN_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
WILDCARD_PAGE = "*"
ACCESS_LOG_LIMIT = 100
EXPIRING_SOON_WINDOW = timedelta(days=7)

_HTML_SUFFIX = re.compile(r"\.html$", re.IGNORECASE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def generate_token() -> str:
    """Generate a new 64 character alphanumeric access token"""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def normalize_page(page: str) -> str:
    """Strip a trailing .html suffix (any case) and lower-case the page id"""
    return _HTML_SUFFIX.sub("", page).lower()


class TokenStatus(str, Enum):
    """Filters understood by token listings and counters"""
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"


class AccessEvent(BaseModel):
    """One successful, logged use of a token"""
    model_config = ConfigDict(from_attributes=True)

    timestamp: datetime = Field(default_factory=utc_now)
    page: str
    ip: str
    user_agent: Optional[str] = None


class TokenRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    token: str = Field(
        default_factory=generate_token,
        min_length=1,
        description="Opaque access token presented in visitor URLs"
    )
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: Optional[str] = None
    allowed_pages: List[str] = Field(default_factory=list)
    allowed_domains: List[str] = Field(default_factory=list)
    expires_at: datetime
    is_active: bool = True
    access_log: List[AccessEvent] = Field(default_factory=list)
    access_count: int = Field(default=0, ge=0)
    last_accessed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("client_email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip().lower() or None

    @field_validator("expires_at", "last_accessed_at", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now()) > self.expires_at

    def matches_status(self, status: TokenStatus, now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        if status == TokenStatus.ACTIVE:
            return self.is_active and self.expires_at > now
        if status == TokenStatus.INACTIVE:
            return not self.is_active
        if status == TokenStatus.EXPIRED:
            return self.expires_at <= now
        if status == TokenStatus.EXPIRING_SOON:
            return self.is_active and now < self.expires_at <= now + EXPIRING_SOON_WINDOW
        return True

    def to_summary(self) -> dict:
        """Serialize without the access log, as used in listings"""
        return self.model_dump(mode="json", exclude={"access_log"})

    def __repr__(self) -> str:
        return f"<TokenRecord id='{self.id}' client='{self.client_name}' active={self.is_active}>"


class TokenCreate(BaseModel):
    """Administrator input for issuing a new token"""
    model_config = ConfigDict(str_strip_whitespace=True)

    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: Optional[str] = None
    allowed_pages: List[str] = Field(..., min_length=1)
    allowed_domains: List[str] = Field(default_factory=list)
    expires_at: Optional[datetime] = None
    expiration_days: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None

    @field_validator("expires_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @field_validator("allowed_pages", "allowed_domains")
    @classmethod
    def drop_blank_entries(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item and item.strip()]

    @field_validator("allowed_pages")
    @classmethod
    def require_page(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("At least one allowed page is required")
        return v


class TokenUpdate(BaseModel):
    """Partial administrator update; unset fields are left untouched"""
    model_config = ConfigDict(str_strip_whitespace=True)

    client_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    client_email: Optional[str] = None
    allowed_pages: Optional[List[str]] = None
    allowed_domains: Optional[List[str]] = None
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("expires_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @field_validator("client_email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip().lower() or None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
