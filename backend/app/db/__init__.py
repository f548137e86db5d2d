"""Database Infrastructure — SQLAlchemy Base for the key-value table.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)

Design Decisions:
    - aiosqlite for on-device/single-host deployments, asyncpg when DATABASE_URL is Postgres
"""
