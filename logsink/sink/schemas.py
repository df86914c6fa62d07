"""Value types shared by the sink components."""

import enum
import json
import os
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.exceptions import ConfigurationError
from ..core.utils import ensure_trailing_separator

DEFAULT_FORMAT = "[%s][%s] %s"
DEFAULT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
DEFAULT_RUNTIME_PATH = "runtime"

# A batch maps category name -> ordered raw messages (str or any structure).
LogBatch = dict[str, list[Any]]


# ----- Configuration -----


class JsonOptions(BaseModel):
    """Encoding flags for structured output."""

    unescaped_unicode: bool = True
    unescaped_slashes: bool = True

    class Config:
        frozen = True


class SinkConfig(BaseModel):
    """Immutable sink configuration, resolved once at sink construction."""

    time_format: str = DEFAULT_TIME_FORMAT
    single: bool | str = False
    file_size: int = Field(default=2 * 1024 * 1024, ge=0)
    path: str = Field(
        default=os.path.join(DEFAULT_RUNTIME_PATH, "log"), validate_default=True
    )
    apart_level: bool | frozenset[str] = frozenset()
    max_files: int = Field(default=0, ge=0)
    json_output: bool = Field(default=False, alias="json")
    json_options: JsonOptions = Field(default_factory=JsonOptions)
    format: str = Field(default=DEFAULT_FORMAT, validate_default=True)

    # Persistence-only options
    slow_sql_time: float = Field(default=1000.0, ge=0)
    action_filters: frozenset[str] = frozenset()
    db_table: str = "sys_log"
    db_connect: str = "default"

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("path")
    @classmethod
    def _path_ends_with_separator(cls, value: str) -> str:
        if not value:
            value = os.path.join(DEFAULT_RUNTIME_PATH, "log")
        return ensure_trailing_separator(value)

    @field_validator("format")
    @classmethod
    def _format_takes_three_slots(cls, value: str) -> str:
        value = value or DEFAULT_FORMAT
        # Rendered as template % (timestamp, category, message)
        try:
            value % ("", "", "")
        except (TypeError, ValueError) as e:
            raise ValueError(f"format must take exactly three %s slots: {e}") from e
        return value

    @classmethod
    def from_options(
        cls, options: dict[str, Any], runtime_path: str = DEFAULT_RUNTIME_PATH
    ) -> "SinkConfig":
        """Build a config from raw driver options.

        Raises:
            ConfigurationError: If an option fails validation
        """
        options = dict(options)
        if not options.get("path"):
            options["path"] = os.path.join(runtime_path, "log")
        if options.get("apart_level") is None:
            options.pop("apart_level", None)
        try:
            return cls(**options)
        except ValidationError as e:
            first = e.errors()[0]
            option = ".".join(str(part) for part in first["loc"]) or None
            raise ConfigurationError(first["msg"], option=option) from e

    @property
    def single_stem(self) -> str | None:
        """File stem used in single-file mode, or None when dated files are used."""
        if not self.single:
            return None
        return self.single if isinstance(self.single, str) else "single"

    def isolates(self, category: str) -> bool:
        """Whether a category is written to its own file."""
        if isinstance(self.apart_level, bool):
            return self.apart_level
        return category in self.apart_level


# ----- Request context -----


class RequestContext(BaseModel):
    """The slice of the current HTTP request the persistence adapter reads."""

    ip: str = ""
    method: str = ""
    host: str = ""
    url: str = ""
    app: str = ""
    controller: str = ""
    action: str = ""
    get: dict[str, Any] = Field(default_factory=dict)
    post: dict[str, Any] = Field(default_factory=dict)

    @property
    def route_path(self) -> str:
        return f"{self.app}/{self.controller}/{self.action}"


# ----- Slow records -----


class SlowRecord(BaseModel):
    """A SQL trace whose runtime met the slow threshold."""

    db: str
    sql: str
    runtime: float  # milliseconds


class PersistedLogEntry(BaseModel):
    """Row written once to the external store."""

    year: str
    month: str
    day: str
    ip: str
    method: str
    host: str
    url: str
    app: str
    controller: str
    action: str
    create_time: int
    create_date: str
    runtime: float
    sql_list: list[SlowRecord]
    param: dict[str, Any]

    def to_record(self, native: bool = False) -> dict[str, Any]:
        """Flatten to a store record.

        Document stores take ``sql_list``/``param`` as structures, relational
        stores as encoded JSON text.
        """
        record = self.model_dump()
        if not native:
            record["sql_list"] = json.dumps(record["sql_list"], ensure_ascii=False)
            record["param"] = json.dumps(record["param"], ensure_ascii=False)
        return record


# ----- Routing and file writes -----


@dataclass(frozen=True)
class Destination:
    """A resolved log file path."""

    path: str
    isolated: bool = False


@dataclass
class RecordSet:
    """Formatted lines bound for one destination."""

    entries: dict[str, list[str]]
    isolated: bool = False
    # Leading debug fields (structured mode) or line (plain mode)
    metrics: dict[str, Any] | None = None
    header: str | None = None


# ----- Outcomes of best-effort steps -----


class OutcomeStatus(str, enum.Enum):
    """Result of a best-effort persistence attempt."""

    PERSISTED = "persisted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PersistOutcome:
    status: OutcomeStatus
    reason: str | None = None
    error: Exception | None = None
    entry: PersistedLogEntry | None = None

    @classmethod
    def skipped(cls, reason: str) -> "PersistOutcome":
        return cls(OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, error: Exception, entry: PersistedLogEntry) -> "PersistOutcome":
        return cls(OutcomeStatus.FAILED, reason=str(error), error=error, entry=entry)

    @classmethod
    def persisted(cls, entry: PersistedLogEntry) -> "PersistOutcome":
        return cls(OutcomeStatus.PERSISTED, entry=entry)


@dataclass(frozen=True)
class RotationOutcome:
    rotated_to: str | None = None
    error: OSError | None = None

    @property
    def rotated(self) -> bool:
        return self.rotated_to is not None


@dataclass(frozen=True)
class RetentionOutcome:
    removed: str | None = None
    error: OSError | None = None
    live_files: list[str] = field(default_factory=list)
