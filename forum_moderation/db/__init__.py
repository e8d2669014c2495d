"""Database Package: declarative Base shared by ORM models and Alembic.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)
"""
