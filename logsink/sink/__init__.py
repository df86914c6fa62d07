"""Rotating file log sink with slow SQL persistence."""

from .crud import RecordStore, SqlAlchemyRecordStore, fetch_entries
from .driver import LogSink
from .metrics import RuntimeCounters
from .middleware import LogSinkMiddleware
from .recorder import LogRecorder, RecorderHandler, install_sql_trace
from .schemas import (
    JsonOptions,
    OutcomeStatus,
    PersistedLogEntry,
    PersistOutcome,
    RequestContext,
    SinkConfig,
    SlowRecord,
)

__all__ = [
    # Driver
    "LogSink",
    "SinkConfig",
    "JsonOptions",
    "RuntimeCounters",
    # Request integration
    "LogRecorder",
    "RecorderHandler",
    "LogSinkMiddleware",
    "RequestContext",
    "install_sql_trace",
    # Persistence
    "RecordStore",
    "SqlAlchemyRecordStore",
    "fetch_entries",
    "PersistedLogEntry",
    "PersistOutcome",
    "OutcomeStatus",
    "SlowRecord",
]
