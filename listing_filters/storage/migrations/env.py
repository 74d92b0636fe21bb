"""Alembic environment configuration for async SQLModel migrations."""

import asyncio
import importlib
import pkgutil
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from sqlmodel import SQLModel

from listing_filters.settings import app_settings


def import_all_models() -> None:
    """
    Import every module of the models package.

    Registers all tables with SQLModel.metadata for Alembic autogenerate
    support.
    """
    models_path = Path(__file__).parent.parent.parent / "models"
    models_package = "listing_filters.models"

    if not models_path.exists():
        return

    for _, modname, ispkg in pkgutil.iter_modules([str(models_path)]):
        if not ispkg and not modname.startswith("_"):
            importlib.import_module(f"{models_package}.{modname}")


import_all_models()

config = context.config

# Override sqlalchemy.url with the one from app settings
config.set_main_option("sqlalchemy.url", app_settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode.

    Configures the context with just a URL and emits the SQL to the script
    output instead of executing it.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations in 'online' mode over an async engine."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
