"""
Database configuration for the log sink.

One engine per connection id: ``default`` plus any named alternates, so the
slow log table can live on a different database than the application data.
"""

import logging

from sqlalchemy import Engine, MetaData, create_engine

from .config import Settings
from .sink.models import build_log_table

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "default"

metadata = MetaData()


def create_store_engine(url: str, echo: bool = False) -> Engine:
    """Create a sync engine for a store connection."""
    return create_engine(
        url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_engines(settings: Settings) -> dict[str, Engine]:
    """Engines keyed by connection id."""
    engines = {DEFAULT_CONNECTION: create_store_engine(settings.database_url)}
    for name, url in settings.database_connections.items():
        engines[name] = create_store_engine(url)
    return engines


def init_db(engines: dict[str, Engine], table_name: str, connection_id: str) -> None:
    """Create the slow log table on the connection it is written through."""
    engine = engines.get(connection_id)
    if engine is None:
        logger.warning(f"No engine for log connection '{connection_id}'")
        return
    build_log_table(table_name, metadata)
    metadata.create_all(engine)


def dispose_engines(engines: dict[str, Engine]) -> None:
    for engine in engines.values():
        engine.dispose()
