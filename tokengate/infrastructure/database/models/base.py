"""Base model classes for database entities."""
from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tokengate.infrastructure.database.types import UTCDateTime


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base model class for all database models."""
    pass


class TimestampedModel(Base):
    """Base model with timestamps."""
    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )


class UUIDModel(TimestampedModel):
    """Base model with UUID primary key and timestamps."""
    __abstract__ = True

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4
    )
