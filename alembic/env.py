"""
Alembic environment for the task manager schema (projects, members, tasks).

Run from the repository root; ``alembic.ini`` puts it on ``sys.path``. The
database url is ``settings.database_url``.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from stm_core.config import settings
from stm_core.db.base import Base
from stm_core.db.session import dispose_engine, get_engine
import stm_core.models  # noqa: F401 register models with metadata

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _migrate(connection: Connection | None = None) -> None:
    if connection is None:
        # Offline: emit SQL for the configured url
        context.configure(
            url=settings.database_url,
            target_metadata=Base.metadata,
            literal_binds=True,
        )
    else:
        context.configure(connection=connection, target_metadata=Base.metadata)

    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    async with get_engine().connect() as connection:
        await connection.run_sync(_migrate)
    await dispose_engine()


if context.is_offline_mode():
    _migrate()
else:
    asyncio.run(_migrate_online())
