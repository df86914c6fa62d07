"""Slow SQL extraction and best-effort persistence to the record store."""

import re
from datetime import datetime

from ..core.logging import get_logger
from .crud import RecordStore
from .formatter import canonicalize
from .schemas import (
    LogBatch,
    PersistedLogEntry,
    PersistOutcome,
    RequestContext,
    SinkConfig,
    SlowRecord,
)

logger = get_logger("sink.slow_sql")

SCHEMA_MARKER = "SHOW FULL COLUMNS"
CONNECT_MARKER = "CONNECT:"
RUNTIME_MARKER = "RunTime:"

_RUNTIME_TOKEN = re.compile(r"\s*(\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*(ms|s)?")


def parse_runtime(line: str) -> float:
    """Milliseconds from the last ``RunTime:`` token; 0.0 when absent or malformed.

    ``s`` values are converted, ``ms`` and bare numbers are taken as-is.
    """
    index = line.rfind(RUNTIME_MARKER)
    if index < 0:
        return 0.0
    match = _RUNTIME_TOKEN.match(line, index + len(RUNTIME_MARKER))
    if not match:
        return 0.0
    value = float(match.group(1))
    if match.group(2) == "s":
        value = round(value * 1000, 6)
    return value


def connection_label(line: str) -> str:
    """Connection target named by a CONNECT trace line."""
    rest = line.split(CONNECT_MARKER, 1)[-1]
    if "]" in rest:
        rest = rest.rsplit("]", 1)[1]
    return rest.strip()


def extract_slow_records(
    lines: list, threshold: float
) -> tuple[list[SlowRecord], float]:
    """Keep the trace lines at or above ``threshold`` ms.

    Returns the slow records and the largest runtime among them.
    """
    records = []
    runtime_max = 0.0
    label = ""
    for raw in lines:
        line = canonicalize(raw)
        if CONNECT_MARKER in line:
            label = connection_label(line)
            continue
        if SCHEMA_MARKER in line:
            continue
        runtime = parse_runtime(line)
        if runtime >= threshold:
            records.append(SlowRecord(db=label, sql=line, runtime=runtime))
            runtime_max = max(runtime_max, runtime)
    return records, runtime_max


def build_entry(
    batch: LogBatch,
    request: RequestContext,
    records: list[SlowRecord],
    runtime_max: float,
    now: datetime,
) -> PersistedLogEntry:
    param = {
        "get": request.get,
        "post": request.post,
        "sql": [canonicalize(m) for m in batch.get("sql", [])],
        "error": [canonicalize(m) for m in batch.get("error", [])],
    }
    return PersistedLogEntry(
        year=now.strftime("%Y"),
        month=now.strftime("%m"),
        day=now.strftime("%d"),
        ip=request.ip,
        method=request.method,
        host=request.host,
        url=request.url,
        app=request.app,
        controller=request.controller,
        action=request.action,
        create_time=int(now.timestamp()),
        create_date=now.strftime("%Y-%m-%d %H:%M:%S"),
        runtime=runtime_max,
        sql_list=records,
        param=param,
    )


def maybe_persist(
    batch: LogBatch,
    request: RequestContext | None,
    config: SinkConfig,
    store: RecordStore | None,
    now: datetime,
) -> PersistOutcome:
    """Forward a slow-request summary to the store when it is worth recording.

    Never raises: every failure comes back as a FAILED outcome.
    """
    if request is None:
        return PersistOutcome.skipped("no request context")
    if store is None:
        return PersistOutcome.skipped("no record store")
    if (
        "sql" not in batch
        and "error" not in batch
        and not request.get
        and not request.post
    ):
        return PersistOutcome.skipped("nothing to record")
    if request.route_path in config.action_filters:
        return PersistOutcome.skipped(f"{request.route_path} is filtered")

    records, runtime_max = extract_slow_records(
        batch.get("sql", []), config.slow_sql_time
    )
    # Error-only batches are not persisted either
    if runtime_max <= 0:
        return PersistOutcome.skipped("no slow statements")

    entry = build_entry(batch, request, records, runtime_max, now)
    try:
        record = entry.to_record(native=store.is_document_store(config.db_connect))
        store.insert(config.db_table, record, config.db_connect)
    except Exception as e:
        logger.warning(
            f"Slow log insert into {config.db_table} failed: {e}",
            extra={"connection": config.db_connect},
        )
        return PersistOutcome.failed(e, entry)

    logger.debug(
        f"Persisted {len(records)} slow statement(s) for {request.route_path}"
    )
    return PersistOutcome.persisted(entry)
