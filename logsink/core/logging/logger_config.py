"""
Central diagnostics logging configuration for the log sink.
Provides setup functions and logger management.
"""

import logging
import os

from .middleware import TransactionIdFilter
from .structured_logger import build_console_handler

ROOT_LOGGER_NAME = "logsink"


class LoggingConfig:
    """Central logging configuration manager."""

    def __init__(self):
        self.handler: logging.Handler | None = None
        self.transaction_filter: TransactionIdFilter | None = None
        self._is_configured = False

    def setup(
        self, log_level: str = "INFO", use_json_format: bool = True
    ) -> logging.Logger:
        """
        Install a stdout handler on the package logger.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            use_json_format: Whether to use JSON formatting

        Returns:
            Configured package logger
        """
        if self._is_configured:
            return get_logger()

        self.transaction_filter = TransactionIdFilter()
        self.handler = build_console_handler(log_level, use_json_format)
        self.handler.addFilter(self.transaction_filter)

        logger = get_logger()
        logger.setLevel(getattr(logging, log_level.upper()))
        logger.addHandler(self.handler)
        logger.propagate = False

        logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
        logging.getLogger("uvicorn").setLevel(logging.INFO)

        self._is_configured = True
        return logger

    def shutdown(self) -> None:
        """Detach the handler installed by setup()."""
        logger = get_logger()
        if self.handler:
            logger.removeHandler(self.handler)
            self.handler.close()
            self.handler = None
        logger.propagate = True
        self._is_configured = False


_logging_config = LoggingConfig()


def setup_logging(
    log_level: str | None = None, use_json_format: bool | None = None
) -> logging.Logger:
    """
    Set up diagnostics logging with environment variable support.

    Args:
        log_level: Logging level (env: LOG_LEVEL)
        use_json_format: Whether to use JSON format (env: LOG_FORMAT=json)

    Returns:
        Configured package logger
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    if use_json_format is None:
        use_json_format = os.getenv("LOG_FORMAT", "json").lower() == "json"

    return _logging_config.setup(log_level=log_level, use_json_format=use_json_format)


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the package namespace."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)


def shutdown_logging() -> None:
    """Shutdown logging gracefully."""
    _logging_config.shutdown()
