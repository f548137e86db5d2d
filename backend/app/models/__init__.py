"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from app.models.kv_entry import KeyValueEntry  # noqa: F401
from app.models.tick_lease import TickLease  # noqa: F401
