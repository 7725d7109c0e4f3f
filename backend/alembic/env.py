"""
Alembic Migration Environment
===============================

What:  Runs PostDesk's migrations with the application's own database URL.
How:   The URL comes from postdesk.config (DATABASE_URL), never from
       alembic.ini. Online runs use an unpooled async engine and hand the
       connection to Alembic through run_sync(). SQLite gets batch mode so
       ALTER-style operations work there too.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from postdesk.config import settings
from postdesk.database import Base

# Registers the posts table on Base.metadata for --autogenerate
import postdesk.models.post  # noqa: F401,E402

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

MIGRATION_OPTIONS = {
    "target_metadata": Base.metadata,
    "render_as_batch": settings.is_sqlite,
    "compare_type": True,
}


def run_offline() -> None:
    """Print the SQL instead of executing it (`alembic upgrade --sql`)."""
    context.configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **MIGRATION_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **MIGRATION_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
