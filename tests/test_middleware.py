"""Tests for the FastAPI integration."""

import os

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from logsink.config import Settings
from logsink.core.logging import shutdown_logging
from logsink.main import create_app
from logsink.sink import LogRecorder, LogSinkMiddleware

from .conftest import read

SLOW = "[ SQL ] SELECT * FROM orders [ RunTime:250ms ]"


@pytest.fixture
def recorder(make_sink):
    return LogRecorder(make_sink(single="app", slow_sql_time=100))


@pytest.fixture
def client(recorder):
    app = FastAPI()
    app.add_middleware(LogSinkMiddleware, recorder=recorder, app_name="shop")

    @app.get("/orders")
    async def list_orders():
        recorder.record("sql", SLOW)
        recorder.record("info", "listing orders")
        return {"ok": True}

    @app.post("/orders")
    async def create_order():
        recorder.record("sql", SLOW)
        return {"ok": True}

    @app.get("/quiet")
    async def quiet():
        return {"ok": True}

    @app.get("/boom")
    async def boom():
        recorder.record("info", "about to fail")
        raise RuntimeError("boom")

    return TestClient(app, raise_server_exceptions=False)


class TestLogSinkMiddleware:
    def test_batch_written_and_persisted(self, client, log_dir, store):
        assert client.get("/orders?page=2").status_code == 200

        content = read(os.path.join(log_dir, "app.log"))
        assert "][sql] " + SLOW in content
        assert "][info] listing orders" in content

        [(table, record, _)] = store.inserts
        assert table == "sys_log"
        assert record["app"] == "shop"
        assert record["controller"] == "test_middleware"
        assert record["action"] == "list_orders"
        assert record["method"] == "GET"
        assert record["url"] == "/orders?page=2"
        assert record["ip"] == "testclient"

    def test_form_body_becomes_post_params(self, client, recorder, store):
        client.post("/orders", data={"sku": "A1"})
        [(_, record, _)] = store.inserts
        assert '"sku": "A1"' in record["param"]
        assert recorder.sink.last_outcome.entry.method == "POST"

    def test_json_body_becomes_post_params(self, client, recorder):
        client.post("/orders", json={"sku": "B2", "qty": 3})
        assert recorder.sink.last_outcome.entry.param["post"] == {"sku": "B2", "qty": 3}

    def test_empty_batch_skips_save(self, client, log_dir):
        client.get("/quiet")
        assert not os.path.exists(os.path.join(log_dir, "app.log"))

    def test_exception_recorded_as_error(self, client, log_dir):
        assert client.get("/boom").status_code == 500
        content = read(os.path.join(log_dir, "app.log"))
        assert "][info] about to fail" in content
        assert "][error] RuntimeError: boom" in content


class TestCreateApp:
    @pytest.fixture
    def settings(self, tmp_path):
        return Settings(
            app_name="shop",
            app_debug=False,
            log_format="text",
            database_url=f"sqlite:///{tmp_path / 'app.db'}",
            sink_path=str(tmp_path / "log"),
            sink_single="app",
        )

    def test_health_and_traced_queries(self, settings, tmp_path):
        try:
            with TestClient(create_app(settings)) as client:
                health = client.get("/api/health")
                assert health.json()["status"] == "healthy"
                assert health.headers["x-transaction-id"]

                listing = client.get("/api/logs/slow")
                assert listing.json() == {"success": True, "message": None, "data": []}
        finally:
            shutdown_logging()

        content = read(str(tmp_path / "log" / "app.log"))
        assert "[ DB ] CONNECT: sqlite:///" in content
        assert "FROM sys_log" in content
