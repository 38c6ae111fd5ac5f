"""Access token and access event database models."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tokengate.infrastructure.database.types import UTCDateTime
from .base import Base, UUIDModel


class AccessTokenModel(UUIDModel):
    """One access grant issued to a client."""
    __tablename__ = "access_tokens"

    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True
    )
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    allowed_pages: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    allowed_domains: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        index=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True
    )
    access_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_accessed_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime,
        nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    access_events: Mapped[List["AccessEventModel"]] = relationship(
        back_populates="access_token",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AccessEventModel.id",
    )

    __table_args__ = (
        CheckConstraint(
            "LENGTH(client_name) >= 1",
            name="access_token_client_name_length"
        ),
        CheckConstraint("access_count >= 0", name="access_token_count_positive"),
        Index("ix_access_tokens_lookup", "token", "is_active", "expires_at"),
    )


class AccessEventModel(Base):
    """A logged, successful use of an access token.

    The autoincrement id orders events chronologically per token.
    """
    __tablename__ = "access_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_id: Mapped[UUID] = mapped_column(
        ForeignKey("access_tokens.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    page: Mapped[str] = mapped_column(String(255), nullable=False)
    ip: Mapped[str] = mapped_column(String(255), nullable=False)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    access_token: Mapped["AccessTokenModel"] = relationship(
        back_populates="access_events"
    )
