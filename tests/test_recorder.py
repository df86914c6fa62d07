"""Tests for request-scoped batch collection."""

import logging
import os

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

from logsink.sink import LogRecorder, RecorderHandler, install_sql_trace
from logsink.sink.slow_sql import parse_runtime

from .conftest import read


@pytest.fixture
def recorder(make_sink):
    return LogRecorder(make_sink(single="app"))


class TestLogRecorder:
    def test_record_without_batch_is_dropped(self, recorder):
        assert recorder.record("info", "orphan") is False
        assert not recorder.active()

    def test_end_returns_entries_in_order(self, recorder):
        token = recorder.begin()
        recorder.record("info", "one")
        recorder.record("sql", "SELECT 1")
        recorder.record("info", "two")
        assert recorder.end(token) == {"info": ["one", "two"], "sql": ["SELECT 1"]}
        assert not recorder.active()

    def test_flush_saves_once(self, recorder, log_dir):
        token = recorder.begin()
        recorder.record("info", "hello")
        assert recorder.flush(token) is True
        assert read(os.path.join(log_dir, "app.log")).endswith("][info] hello\n")
        assert recorder.record("info", "after flush") is False

    def test_empty_flush_writes_nothing(self, recorder, log_dir):
        assert recorder.flush(recorder.begin()) is True
        assert not os.path.exists(os.path.join(log_dir, "app.log"))

    def test_connection_line_recorded_once_per_label(self, recorder):
        token = recorder.begin()
        recorder.record_connection("sqlite://")
        recorder.record_connection("sqlite://")
        recorder.record_connection("mysql://replica")
        assert recorder.end(token)["sql"] == [
            "[ DB ] CONNECT: sqlite://",
            "[ DB ] CONNECT: mysql://replica",
        ]


class TestRecorderHandler:
    @pytest.fixture
    def app_logger(self, recorder):
        logger = logging.getLogger("tests.recorder.app")
        handler = RecorderHandler(recorder)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
        yield logger
        logger.removeHandler(handler)

    def test_records_by_level_name(self, recorder, app_logger):
        token = recorder.begin()
        app_logger.info("order %s placed", 7)
        app_logger.error("payment declined")
        assert recorder.end(token) == {
            "info": ["order 7 placed"],
            "error": ["payment declined"],
        }

    def test_ignores_sink_diagnostics(self, recorder):
        handler = RecorderHandler(recorder)
        token = recorder.begin()
        record = logging.LogRecord(
            "logsink.sink.rotation", logging.WARNING, __file__, 1, "rotate failed", None, None
        )
        handler.emit(record)
        assert recorder.end(token) == {}


class TestSqlTrace:
    def test_statements_become_trace_lines(self, recorder):
        engine = create_engine("sqlite://")
        install_sql_trace(engine, recorder)

        token = recorder.begin()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        lines = recorder.end(token)["sql"]
        engine.dispose()

        assert lines[0] == "[ DB ] CONNECT: sqlite://"
        [select] = [line for line in lines if "SELECT 1" in line]
        assert select.startswith("[ SQL ] SELECT 1 [ RunTime:")
        assert select.endswith("s ]")
        assert parse_runtime(select) >= 0.0

    def test_no_batch_no_trace(self, recorder):
        engine = create_engine("sqlite://")
        install_sql_trace(engine, recorder)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        engine.dispose()
        assert not recorder.active()

    def test_failed_statements_are_traced_without_leaking(self, recorder):
        engine = create_engine("sqlite://")
        install_sql_trace(engine, recorder)

        token = recorder.begin()
        with engine.connect() as conn:
            for _ in range(5):
                with pytest.raises(OperationalError):
                    conn.execute(text("SELECT * FROM missing"))
            assert "query_start_time" not in conn.info
        lines = recorder.end(token)["sql"]
        engine.dispose()

        failed = [line for line in lines if "FROM missing" in line]
        assert len(failed) == 5
        assert all(line.startswith("[ SQL ] SELECT * FROM missing [ RunTime:") for line in failed)
