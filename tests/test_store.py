"""Tests for the SQLAlchemy record store."""

import pytest
from sqlalchemy import MetaData, create_engine

from logsink.core.exceptions import PersistenceError
from logsink.database import init_db
from logsink.sink import OutcomeStatus, SqlAlchemyRecordStore, fetch_entries
from logsink.sink.models import build_log_table
from logsink.sink.slow_sql import maybe_persist

from .conftest import FIXED_NOW

SLOW = "[ SQL ] SELECT * FROM orders [ RunTime:0.250000s ]"


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'logs.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def metadata(engine):
    metadata = MetaData()
    build_log_table("sys_log", metadata)
    metadata.create_all(engine)
    return metadata


class TestSqlAlchemyRecordStore:
    def test_persisted_entry_round_trips(
        self, engine, metadata, make_config, request_context
    ):
        store = SqlAlchemyRecordStore({"default": engine}, metadata)
        outcome = maybe_persist(
            {"sql": [SLOW]},
            request_context,
            make_config(slow_sql_time=100),
            store,
            FIXED_NOW,
        )
        assert outcome.status is OutcomeStatus.PERSISTED

        [row] = fetch_entries(engine, "sys_log", metadata=metadata)
        assert row["runtime"] == 250.0
        assert row["create_date"] == "2026-10-19 14:30:05"
        assert row["sql_list"] == [{"db": "", "sql": SLOW, "runtime": 250.0}]
        assert row["param"]["get"] == {"page": "2"}

    def test_newest_first(self, engine, metadata):
        store = SqlAlchemyRecordStore({"default": engine}, metadata)
        for runtime in (1.0, 2.0):
            store.insert("sys_log", _record(runtime), "default")
        rows = fetch_entries(engine, "sys_log", metadata=metadata)
        assert [r["runtime"] for r in rows] == [2.0, 1.0]

    def test_unknown_connection_raises_persistence_error(self, engine, metadata):
        store = SqlAlchemyRecordStore({"default": engine}, metadata)
        with pytest.raises(PersistenceError) as exc_info:
            store.insert("sys_log", _record(1.0), "archive")
        assert exc_info.value.connection_id == "archive"

    def test_database_error_is_wrapped(self, engine):
        store = SqlAlchemyRecordStore({"default": engine})
        with pytest.raises(PersistenceError):
            store.insert("missing_table", _record(1.0), "default")

    def test_named_connection_is_used(self, tmp_path, engine, metadata, make_config, request_context):
        archive = create_engine(f"sqlite:///{tmp_path / 'archive.db'}")
        init_db({"archive": archive}, "sys_log", "archive")
        store = SqlAlchemyRecordStore({"default": engine, "archive": archive}, metadata)

        maybe_persist(
            {"sql": [SLOW]},
            request_context,
            make_config(slow_sql_time=100, db_connect="archive"),
            store,
            FIXED_NOW,
        )

        assert fetch_entries(engine, "sys_log", metadata=metadata) == []
        assert len(fetch_entries(archive, "sys_log")) == 1
        archive.dispose()

    def test_is_relational(self, engine):
        assert SqlAlchemyRecordStore({"default": engine}).is_document_store("default") is False


def _record(runtime):
    return {
        "year": "2026",
        "month": "10",
        "day": "19",
        "ip": "127.0.0.1",
        "method": "GET",
        "host": "localhost",
        "url": "/",
        "app": "shop",
        "controller": "home",
        "action": "index",
        "create_time": 1792420205,
        "create_date": "2026-10-19 14:30:05",
        "runtime": runtime,
        "sql_list": "[]",
        "param": "{}",
    }
