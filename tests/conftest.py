import os
from datetime import datetime, timezone

import pytest

from logsink.sink import LogSink, RequestContext, SinkConfig

FIXED_NOW = datetime(2026, 10, 19, 14, 30, 5, tzinfo=timezone.utc)
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class FakeRecordStore:
    """In-memory record store capturing inserts."""

    def __init__(self, document: bool = False, error: Exception | None = None):
        self.document = document
        self.error = error
        self.inserts = []

    def is_document_store(self, connection_id):
        return self.document

    def insert(self, table, record, connection_id):
        if self.error is not None:
            raise self.error
        self.inserts.append((table, record, connection_id))


@pytest.fixture
def log_dir(tmp_path):
    return str(tmp_path / "log")


@pytest.fixture
def make_config(log_dir):
    """Factory for sink configs rooted in a temp directory."""

    def _make(**overrides):
        options = {"path": log_dir, "time_format": TIME_FORMAT}
        options.update(overrides)
        return SinkConfig.from_options(options)

    return _make


@pytest.fixture
def store():
    return FakeRecordStore()


@pytest.fixture
def make_sink(make_config, store):
    def _make(store=store, debug=False, counters=None, **overrides):
        return LogSink(
            make_config(**overrides),
            store=store,
            debug=debug,
            counters=counters,
            clock=lambda: FIXED_NOW,
        )

    return _make


@pytest.fixture
def request_context():
    return RequestContext(
        ip="10.0.0.7",
        method="GET",
        host="shop.example.com",
        url="/orders?page=2",
        app="shop",
        controller="orders",
        action="index",
        get={"page": "2"},
    )


def read(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


def touch(path, content=""):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
