"""Slow log table

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the table slow-request entries are persisted to. The name follows
the sink_db_table setting (default: sys_log).
"""
import os
from typing import Sequence, Union

import sqlalchemy as sa
import yaml

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_name() -> str:
    config_path = os.getenv("CONFIG")
    if config_path and os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        return data.get("sink_db_table") or data.get("SINK_DB_TABLE") or "sys_log"
    return "sys_log"


def upgrade() -> None:
    """Create the slow log table."""
    table = _table_name()

    op.create_table(
        table,
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("year", sa.String(4), nullable=False),
        sa.Column("month", sa.String(2), nullable=False),
        sa.Column("day", sa.String(2), nullable=False),
        sa.Column("ip", sa.String(64), nullable=False),
        sa.Column("method", sa.String(16), nullable=False),
        sa.Column("host", sa.String(255), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("app", sa.String(64), nullable=False),
        sa.Column("controller", sa.String(128), nullable=False),
        sa.Column("action", sa.String(128), nullable=False),
        sa.Column("create_time", sa.Integer(), nullable=False),
        sa.Column("create_date", sa.String(19), nullable=False),
        sa.Column("runtime", sa.Float(), nullable=False),
        sa.Column("sql_list", sa.Text(), nullable=False),
        sa.Column("param", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{table}_date", table, ["year", "month", "day"])
    op.create_index(f"ix_{table}_runtime", table, ["runtime"])


def downgrade() -> None:
    """Drop the slow log table."""
    table = _table_name()
    op.drop_index(f"ix_{table}_runtime", table_name=table)
    op.drop_index(f"ix_{table}_date", table_name=table)
    op.drop_table(table)
