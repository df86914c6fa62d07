"""
Alembic environment configuration for the log sink.

Runs against the connection the slow log table is written through.
"""

import os
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

# Load the CONFIG environment variable for YAML config
config_path = os.getenv("CONFIG", "resources/config/local.yaml")
os.environ.setdefault("CONFIG", config_path)

from logsink.config import get_settings  # noqa: E402
from logsink.database import DEFAULT_CONNECTION, metadata  # noqa: E402
from logsink.sink.models import build_log_table  # noqa: E402

settings = get_settings()

# Alembic Config object
config = context.config

# The log table may live on a named alternate connection
if settings.sink_db_connect == DEFAULT_CONNECTION:
    db_url = settings.database_url
else:
    db_url = settings.database_connections[settings.sink_db_connect]
config.set_main_option("sqlalchemy.url", db_url)

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

build_log_table(settings.sink_db_table, metadata)
target_metadata = metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Emits SQL to the script output without a live database connection.
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


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = db_url

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
