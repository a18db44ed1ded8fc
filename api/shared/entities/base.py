"""Shared base entity for all database models."""
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Integer, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column
from sqlalchemy.types import TypeDecorator

from api.shared.utils import utcnow

# SQLite only auto-increments INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer(), "sqlite")

TABLE_PREFIX = "chat_"


class UtcDateTime(TypeDecorator):
    """Timezone-aware UTC timestamp on every backend.

    SQLite drops the offset on storage, so values are normalized to UTC on the
    way in and tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            # Naive values are taken to be UTC already
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class BaseEntity(DeclarativeBase):
    """Base class for all chat entities.

    Ids come from the store's auto-increment allocator, so they grow
    monotonically in insertion order.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Generate a prefixed, pluralized table name from the class name."""
        snake = re.sub(r"(?<!^)(?=[A-Z])", "_", cls.__name__).lower()
        return f"{TABLE_PREFIX}{snake}s"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UtcDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    def is_loaded(self, attribute: str) -> bool:
        """Whether a relationship was populated, so reading it will not hit the store."""
        return attribute not in inspect(self).unloaded

    def __repr__(self) -> str:
        """String representation of the entity."""
        return f"<{self.__class__.__name__}(id={self.id})>"
