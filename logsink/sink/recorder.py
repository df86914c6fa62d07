"""
Per-request batch collection.

Application code, the ``logging`` bridge and the SQL tracer all record into
the batch of the current context; the batch is handed to the sink once at
the end of the unit of work.
"""

import logging
import time
from contextvars import ContextVar, Token
from typing import Any

from sqlalchemy import Engine, event

from .driver import LogSink
from .metrics import RuntimeCounters
from .schemas import LogBatch, RequestContext
from .slow_sql import CONNECT_MARKER


class _Batch:
    def __init__(self):
        self.entries: LogBatch = {}
        self.connection: str | None = None


_current_batch: ContextVar[_Batch | None] = ContextVar("log_batch", default=None)


class LogRecorder:
    """Collects categorized messages for the current context."""

    def __init__(self, sink: LogSink):
        self.sink = sink

    def begin(self) -> Token:
        """Open a fresh batch for the current context."""
        return _current_batch.set(_Batch())

    def active(self) -> bool:
        return _current_batch.get() is not None

    def record(self, category: str, message: Any) -> bool:
        """Add a message; returns False when no batch is open."""
        batch = _current_batch.get()
        if batch is None:
            return False
        batch.entries.setdefault(category, []).append(message)
        return True

    def record_connection(self, label: str) -> None:
        """Record a CONNECT trace line unless ``label`` is already the current one."""
        batch = _current_batch.get()
        if batch is None or batch.connection == label:
            return
        batch.connection = label
        self.record("sql", f"[ DB ] {CONNECT_MARKER} {label}")

    def end(self, token: Token) -> LogBatch:
        """Close the batch opened by ``token`` and return its entries."""
        batch = _current_batch.get()
        _current_batch.reset(token)
        return batch.entries if batch is not None else {}

    def flush(
        self,
        token: Token,
        append: bool = False,
        request: RequestContext | None = None,
        counters: RuntimeCounters | None = None,
    ) -> bool:
        """Close the batch and save it. Empty batches are not written."""
        entries = self.end(token)
        if not entries:
            return True
        return self.sink.save(entries, append, request, counters)


class RecorderHandler(logging.Handler):
    """Routes ``logging`` records into the current batch by level name."""

    def __init__(self, recorder: LogRecorder, level: int = logging.NOTSET):
        super().__init__(level)
        self.recorder = recorder

    def emit(self, record: logging.LogRecord) -> None:
        # The sink's own diagnostics never feed back into the batch
        if record.name == "logsink" or record.name.startswith("logsink."):
            return
        try:
            self.recorder.record(record.levelname.lower(), self.format(record))
        except Exception:
            self.handleError(record)


def install_sql_trace(engine: Engine, recorder: LogRecorder) -> None:
    """Record every statement executed on ``engine`` as a SQL trace line."""
    label = engine.url.render_as_string(hide_password=True)

    @event.listens_for(engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        recorder.record_connection(label)
        if context is not None:
            context._query_start_time = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def _record_statement(conn, cursor, statement, parameters, context, executemany):
        _trace_statement(recorder, statement, context)

    @event.listens_for(engine, "handle_error")
    def _record_failure(exception_context):
        # Failed statements are traced with the time spent before the error
        if exception_context.statement is None:
            return
        _trace_statement(
            recorder,
            exception_context.statement,
            exception_context.execution_context,
        )


def _trace_statement(recorder: LogRecorder, statement: str, context) -> None:
    start = getattr(context, "_query_start_time", None)
    if start is None:
        return
    # Traced once, even when an error follows a completed execute
    context._query_start_time = None
    elapsed = time.perf_counter() - start
    sql = " ".join(statement.split())
    recorder.record("sql", f"[ SQL ] {sql} [ RunTime:{elapsed:.6f}s ]")
