"""Table definition for persisted slow-request entries."""

from sqlalchemy import Column, Float, Index, Integer, MetaData, String, Table, Text

from ..core.database_types import EncodedJSON


def build_log_table(name: str, metadata: MetaData) -> Table:
    """Return the slow log table ``name`` bound to ``metadata``.

    The table name is configurable, so the shape is produced on demand
    instead of through a declarative model.
    """
    if name in metadata.tables:
        return metadata.tables[name]

    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("year", String(4), nullable=False),
        Column("month", String(2), nullable=False),
        Column("day", String(2), nullable=False),
        Column("ip", String(64), nullable=False, default=""),
        Column("method", String(16), nullable=False, default=""),
        Column("host", String(255), nullable=False, default=""),
        Column("url", Text, nullable=False),
        Column("app", String(64), nullable=False, default=""),
        Column("controller", String(128), nullable=False, default=""),
        Column("action", String(128), nullable=False, default=""),
        Column("create_time", Integer, nullable=False),
        Column("create_date", String(19), nullable=False),
        Column("runtime", Float, nullable=False),
        Column("sql_list", EncodedJSON, nullable=False),
        Column("param", EncodedJSON, nullable=False),
        Index(f"ix_{name}_date", "year", "month", "day"),
        Index(f"ix_{name}_runtime", "runtime"),
    )
