"""Alembic environment for the forum database; migrations run over the async engine."""

from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from forum.core.config import settings
from forum.db import models  # noqa: F401
from forum.db.base import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# configparser interpolates "%", which shows up in url-encoded passwords.
config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))


def _configure(**options: Any) -> None:
    context.configure(target_metadata=Base.metadata, compare_type=True, **options)


def run_offline() -> None:
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
