"""Core infrastructure for the log sink."""

from .database_types import EncodedJSON
from .exceptions import (
    ConfigurationError,
    DirectoryCreationError,
    LogSinkException,
    PersistenceError,
)

__all__ = [
    "EncodedJSON",
    "LogSinkException",
    "ConfigurationError",
    "DirectoryCreationError",
    "PersistenceError",
]
