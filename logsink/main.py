"""Log sink host application - FastAPI entry point wiring the sink into requests."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .core.exceptions import LogSinkException
from .core.logging import RequestIdMiddleware, get_logger, setup_logging
from .database import (
    DEFAULT_CONNECTION,
    build_engines,
    dispose_engines,
    init_db,
    metadata,
)
from .sink import (
    LogRecorder,
    LogSink,
    LogSinkMiddleware,
    RecorderHandler,
    RuntimeCounters,
    SqlAlchemyRecordStore,
    fetch_entries,
    install_sql_trace,
)

logger = get_logger("main")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around one sink instance."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format.lower() == "json")

    config = settings.sink_config()
    engines = build_engines(settings)
    sink = LogSink(
        config,
        store=SqlAlchemyRecordStore(engines, metadata),
        debug=settings.app_debug,
        counters=RuntimeCounters.capture(),
    )
    recorder = LogRecorder(sink)
    install_sql_trace(engines[DEFAULT_CONNECTION], recorder)
    logging.getLogger(settings.app_name).addHandler(RecorderHandler(recorder))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting log sink application...")
        logger.info(f"Environment: {settings.app_env}")
        logger.info(f"Log path: {config.path}")
        init_db(engines, config.db_table, config.db_connect)
        yield
        logger.info("Shutting down log sink application...")
        dispose_engines(engines)

    app = FastAPI(
        title="Log Sink",
        version="0.1.0",
        docs_url="/api/docs" if settings.app_debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.app_debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.sink = sink
    app.state.recorder = recorder
    app.state.engines = engines

    app.add_middleware(
        LogSinkMiddleware,
        recorder=recorder,
        app_name=settings.app_name,
        append=settings.app_debug,
    )
    # Added last so it runs first and the transaction id covers the sink
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(LogSinkException)
    async def log_sink_exception_handler(request: Request, exc: LogSinkException):
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": exc.message,
                "error": exc.message,
                "data": None,
            },
        )

    @app.get("/api/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "0.1.0",
            "env": settings.app_env,
        }

    @app.get("/api/logs/slow", tags=["Logs"])
    def list_slow_logs(limit: int = Query(50, ge=1, le=500)):
        """Most recent persisted slow-request entries."""
        engine = engines.get(config.db_connect)
        if engine is None:
            return {"success": False, "message": "Unknown log connection", "data": []}
        return {
            "success": True,
            "message": None,
            "data": fetch_entries(engine, config.db_table, limit, metadata),
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "logsink.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=os.getenv("APP_ENV", "development") == "development",
    )
