"""
Custom exception classes for consistent error handling across the sink.
"""

from typing import Any


class LogSinkException(Exception):
    """Base exception for all log sink related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(LogSinkException):
    """Raised when sink options cannot be resolved into a valid configuration."""

    def __init__(
        self,
        message: str,
        option: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        if option:
            full_message = f"Invalid sink option '{option}': {message}"
        else:
            full_message = message
        super().__init__(full_message, details)
        self.option = option


class DirectoryCreationError(LogSinkException):
    """Raised when a log directory is missing and cannot be created."""

    def __init__(self, path: str, details: dict[str, Any] | None = None):
        message = f"Log directory '{path}' could not be created"
        super().__init__(message, details)
        self.path = path


class PersistenceError(LogSinkException):
    """Raised when the external record store rejects an insert."""

    def __init__(
        self,
        table: str,
        connection_id: str,
        details: dict[str, Any] | None = None,
    ):
        message = f"Insert into '{table}' via connection '{connection_id}' failed"
        super().__init__(message, details)
        self.table = table
        self.connection_id = connection_id
