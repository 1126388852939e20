"""Root conftest — shared test configuration."""

import os

# Tests never reach a real database server or start the background poller
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("POLLER_ENABLED", "false")
os.environ.setdefault("FACILITY_TIMEZONE", "America/Sao_Paulo")
