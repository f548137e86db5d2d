"""KeyValueEntry ORM — durable whole-value slots backing EventCache and NotificationLedger.

Invariants:
    - key is the primary key; one row per logical collection
    - value holds the full serialized collection (JSON bytes)
    - updated_at refreshed on every write

Design Decisions:
    - Opaque LargeBinary value: the core owns the format, the table never interprets it
"""

from datetime import datetime, timezone

from sqlalchemy import String, LargeBinary, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class KeyValueEntry(Base):
    """One stored collection."""
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
