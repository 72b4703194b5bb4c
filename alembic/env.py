# alembic/env.py
# isort: skip_file
# ruff: noqa: E402
"""
Migration environment for the ledger schema.

- The URL is sqlalchemy.url when a caller sets it (alembic.ini does not
  set it), otherwise DATABASE_URL from app.config.get_settings().
- A caller may hand over an open connection in config.attributes["connection"];
  the test suite does this to migrate a throwaway SQLite file.
- SQLModel.metadata (filled by importing app.models) drives autogenerate.

Usage:
  alembic revision -m "..." --autogenerate
  alembic upgrade head
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from app.config import get_settings
import app.models  # noqa: F401  # registers every table on SQLModel.metadata

config = context.config

# keep the app's own loggers (ledger.*, db) alive when run in-process
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_settings().database_url


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=True,  # ALTER TABLE support on SQLite
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        _configure(connection=connection)
        return

    connectable = engine_from_config(
        {"sqlalchemy.url": _database_url()},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
