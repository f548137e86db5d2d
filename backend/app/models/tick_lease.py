"""TickLease ORM — the cross-process tick lease row.

Invariants:
    - name is the primary key; one row per lease ("reminder-tick")
    - owner is the tick id holding the lease; expires_at bounds a crashed holder

Design Decisions:
    - Separate table from kv_entries: claiming needs a conditional UPDATE on
      owner/expiry columns, which an opaque value blob cannot express
"""

from datetime import datetime

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TickLease(Base):
    """Current holder of one named lease."""
    __tablename__ = "tick_leases"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    owner: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
