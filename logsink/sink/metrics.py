"""Debug metrics: elapsed time, throughput, memory delta and loaded modules."""

import os
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace

import psutil

from .schemas import RecordSet

UNBOUNDED = "∞"


def current_memory() -> int:
    """Resident set size of this process, in bytes."""
    return psutil.Process(os.getpid()).memory_info().rss


def loaded_module_count() -> int:
    return len(sys.modules)


@dataclass
class RuntimeCounters:
    """Start-of-work counters supplied by the hosting process."""

    begin_time: float
    begin_memory: int
    memory_probe: Callable[[], int] = field(default=current_memory, repr=False)
    module_probe: Callable[[], int] = field(default=loaded_module_count, repr=False)

    @classmethod
    def capture(cls) -> "RuntimeCounters":
        return cls(begin_time=time.time(), begin_memory=current_memory())


@dataclass(frozen=True)
class DebugMetrics:
    runtime: float
    reqs: str
    memory: str
    files: int

    def as_fields(self) -> dict[str, str | int]:
        return {
            "runtime": f"{self.runtime:.6f}s",
            "reqs": f"{self.reqs}req/s",
            "memory": f"{self.memory}kb",
            "file": self.files,
        }

    def header(self) -> str:
        return (
            f"[runtime: {self.runtime:.6f}s] [throughput: {self.reqs}req/s]"
            f" [memory: {self.memory}kb] [modules loaded: {self.files}]"
        )


def collect_metrics(counters: RuntimeCounters, now: float | None = None) -> DebugMetrics:
    now = time.time() if now is None else now
    runtime = round(now - counters.begin_time, 10)
    reqs = f"{1 / runtime:,.2f}" if runtime > 0 else UNBOUNDED
    memory = (counters.memory_probe() - counters.begin_memory) / 1024
    return DebugMetrics(
        runtime=runtime,
        reqs=reqs,
        memory=f"{memory:,.2f}",
        files=counters.module_probe(),
    )


def inject(
    record_set: RecordSet,
    append: bool,
    counters: RuntimeCounters | None,
    debug: bool,
    structured: bool,
    now: float | None = None,
) -> RecordSet:
    """Return the record set with debug metrics attached when enabled.

    Structured output gets the metrics as leading fields, isolated or not.
    Plain output gets a single leading line, never on isolated writes.
    """
    if not (debug and append) or counters is None:
        return record_set
    if not structured and record_set.isolated:
        return record_set

    metrics = collect_metrics(counters, now)
    if structured:
        return replace(record_set, metrics=metrics.as_fields())
    return replace(record_set, header=metrics.header())
