"""Record store access for persisted slow-request entries."""

from typing import Any, Protocol

from sqlalchemy import Engine, MetaData, insert, select
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import PersistenceError
from .models import build_log_table


class RecordStore(Protocol):
    """Insert-only sink for persisted entries, addressed by connection id."""

    def insert(self, table: str, record: dict[str, Any], connection_id: str) -> None:
        ...

    def is_document_store(self, connection_id: str) -> bool:
        ...


class SqlAlchemyRecordStore:
    """Relational record store over one SQLAlchemy engine per connection id."""

    def __init__(self, engines: dict[str, Engine], metadata: MetaData | None = None):
        self._engines = engines
        self._metadata = metadata or MetaData()

    def is_document_store(self, connection_id: str) -> bool:
        return False

    def insert(self, table: str, record: dict[str, Any], connection_id: str) -> None:
        """Insert one row.

        Raises:
            PersistenceError: Unknown connection id or database failure
        """
        engine = self._engines.get(connection_id)
        if engine is None:
            raise PersistenceError(
                table, connection_id, {"error": "unknown connection id"}
            )

        log_table = build_log_table(table, self._metadata)
        try:
            with engine.begin() as conn:
                conn.execute(insert(log_table).values(**record))
        except SQLAlchemyError as e:
            raise PersistenceError(table, connection_id, {"error": str(e)}) from e


def fetch_entries(
    engine: Engine, table: str, limit: int = 50, metadata: MetaData | None = None
) -> list[dict[str, Any]]:
    """Get the most recent persisted entries, newest first."""
    log_table = build_log_table(table, metadata or MetaData())
    with engine.connect() as conn:
        result = conn.execute(
            select(log_table).order_by(log_table.c.id.desc()).limit(limit)
        )
        return [dict(row) for row in result.mappings()]
