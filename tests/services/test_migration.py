"""Initial Migration: the Alembic schema matches the ORM metadata.

Invariants:
    - Upgrade creates every table declared on Base.metadata, with the same columns
    - Upgrade seeds the three roles; downgrade drops everything
"""

import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect, text

from forum_moderation.db.base import Base
import forum_moderation.models  # noqa: F401

MIGRATION = (
    Path(__file__).resolve().parents[2] / "alembic" / "versions" / "001_initial_schema.py"
)


def _load_migration():
    spec = importlib.util.spec_from_file_location("migration_001", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _run(engine, step):
    migration = _load_migration()
    with engine.begin() as conn:
        ops = Operations(MigrationContext.configure(conn))
        migration.op = ops
        getattr(migration, step)()


def test_upgrade_matches_metadata():
    engine = create_engine("sqlite://")
    _run(engine, "upgrade")

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) == set(Base.metadata.tables)
    for name, table in Base.metadata.tables.items():
        migrated = {c["name"] for c in inspector.get_columns(name)}
        assert migrated == {c.name for c in table.columns}, name

    indexes = {i["name"] for i in inspector.get_indexes("user_sanctions")}
    assert {"ix_user_sanctions_user_active", "ix_user_sanctions_active_expires"} <= indexes

    with engine.connect() as conn:
        roles = conn.execute(text("SELECT name FROM roles ORDER BY id")).scalars().all()
    assert roles == ["admin", "moderator", "user"]


def test_downgrade_drops_all_tables():
    engine = create_engine("sqlite://")
    _run(engine, "upgrade")
    _run(engine, "downgrade")
    assert inspect(engine).get_table_names() == []
