"""
File log sink with optional slow-request persistence.

One ``save`` call per unit of work: persist slow SQL (best effort), resolve
the master file, route categories, rotate oversized files and append.
"""

import os
from collections.abc import Callable
from datetime import datetime

from ..core.exceptions import DirectoryCreationError
from ..core.logging import get_logger
from ..core.utils import local_now
from .crud import RecordStore
from .destination import isolated_destination, master_destination
from .formatter import format_timestamp, serialize
from .metrics import RuntimeCounters, inject
from .rotation import append_to_file, check_and_rotate
from .routing import route
from .schemas import LogBatch, PersistOutcome, RecordSet, RequestContext, SinkConfig
from .slow_sql import maybe_persist

logger = get_logger("sink")


class LogSink:
    """Writes categorized log batches to rotating files.

    Attributes:
        config: Resolved, read-only sink configuration
        store: Optional record store for slow-request entries
        debug: Whether the host runs in debug mode (enables metrics)
        counters: Default runtime counters used when ``save`` gets none
        last_outcome: Persistence outcome of the most recent ``save`` on any
            thread (last writer wins); use ``save_with_outcome`` for the
            outcome of a specific call
    """

    def __init__(
        self,
        config: SinkConfig,
        store: RecordStore | None = None,
        debug: bool = False,
        counters: RuntimeCounters | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config
        self.store = store
        self.debug = debug
        self.counters = counters
        self._clock = clock or local_now
        self.last_outcome: PersistOutcome | None = None

    def save(
        self,
        batch: LogBatch,
        append: bool = False,
        request: RequestContext | None = None,
        counters: RuntimeCounters | None = None,
    ) -> bool:
        """Write one batch; see ``save_with_outcome``."""
        written, _ = self.save_with_outcome(batch, append, request, counters)
        return written

    def save_with_outcome(
        self,
        batch: LogBatch,
        append: bool = False,
        request: RequestContext | None = None,
        counters: RuntimeCounters | None = None,
    ) -> tuple[bool, PersistOutcome]:
        """Write one batch and report what happened to its slow-request entry.

        Args:
            batch: Category name -> ordered raw messages
            append: Whether debug metrics are added to the output
            request: Current request, or None outside request serving
            counters: Runtime counters for this unit of work

        Returns:
            Result of the master file append (True when nothing went there)
            and the persistence outcome of this call

        Raises:
            DirectoryCreationError: If the log directory cannot be created
        """
        now = self._clock()
        outcome = maybe_persist(batch, request, self.config, self.store, now)
        self.last_outcome = outcome

        destination = master_destination(self.config, now)
        directory = os.path.dirname(destination.path)
        self._ensure_directory(directory)

        timestamp = format_timestamp(now, self.config.time_format)
        routed = route(batch, self.config, timestamp)
        counters = counters or self.counters

        for category, lines in routed.isolated.items():
            isolated = isolated_destination(self.config, directory, category, now)
            self._write(
                RecordSet({category: lines}, isolated=True),
                isolated.path,
                append,
                counters,
                now,
            )

        written = True
        if routed.master:
            written = self._write(
                RecordSet(routed.master), destination.path, append, counters, now
            )
        return written, outcome

    def _ensure_directory(self, directory: str) -> None:
        if os.path.isdir(directory):
            return
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(directory, {"error": str(e)}) from e

    def _write(
        self,
        record_set: RecordSet,
        path: str,
        append: bool,
        counters: RuntimeCounters | None,
        now: datetime,
    ) -> bool:
        check_and_rotate(path, self.config.file_size, now.timestamp())
        record_set = inject(
            record_set,
            append,
            counters,
            debug=self.debug,
            structured=self.config.json_output,
        )
        return append_to_file(path, serialize(record_set, self.config))
