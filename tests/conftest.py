"""Root conftest: shared test configuration."""

import os

# Tests never touch a real database or start the background sweep
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("SWEEP_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")
