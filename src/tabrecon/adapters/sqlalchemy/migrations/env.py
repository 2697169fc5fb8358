"""Alembic entry point.

``upgrade_head`` hands over an open connection through ``config.attributes``;
plain ``alembic`` invocations fall back to ``sqlalchemy.url`` or the configured
database.
"""

from __future__ import annotations

from typing import Any

from alembic import context
from sqlalchemy import Connection, create_engine, pool

from tabrecon.adapters.sqlalchemy import mapper_registry, start_mappers
from tabrecon.config import get_database_config

start_mappers()

_OPTIONS: dict[str, Any] = {
    "target_metadata": mapper_registry.metadata,
    # SQLite cannot ALTER most constraints in place
    "render_as_batch": True,
    "compare_type": True,
}


def _database_url() -> str:
    return context.config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(**options: Any) -> None:
    context.configure(**_OPTIONS, **options)
    with context.begin_transaction():
        context.run_migrations()


def _migrate_online() -> None:
    connection: Connection | None = context.config.attributes.get("connection")
    if connection is not None:
        _migrate(connection=connection)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as owned:
            _migrate(connection=owned)
    finally:
        engine.dispose()


if context.is_offline_mode():
    _migrate(url=_database_url(), literal_binds=True)
else:
    _migrate_online()
