"""
Configuration management for the log sink host application.
Loads settings from YAML configuration files.
"""

import os
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

from .sink.schemas import DEFAULT_FORMAT, DEFAULT_TIME_FORMAT, SinkConfig


class Settings(BaseSettings):
    """Application settings loaded from YAML config files."""

    # Application
    app_name: str = Field(default="app", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    app_debug: bool = Field(default=True, alias="APP_DEBUG")
    runtime_path: str = Field(default="runtime", alias="RUNTIME_PATH")

    # Diagnostics logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    # Database
    database_url: str = Field(
        default="sqlite:///runtime/logsink.db", alias="DATABASE_URL"
    )
    database_connections: dict[str, str] = Field(
        default_factory=dict, alias="DATABASE_CONNECTIONS"
    )

    # Sink
    sink_time_format: str = Field(default=DEFAULT_TIME_FORMAT, alias="SINK_TIME_FORMAT")
    sink_single: bool | str = Field(default=False, alias="SINK_SINGLE")
    sink_file_size: int = Field(default=2 * 1024 * 1024, alias="SINK_FILE_SIZE")
    sink_path: str = Field(default="", alias="SINK_PATH")
    sink_apart_level: bool | list[str] = Field(
        default_factory=list, alias="SINK_APART_LEVEL"
    )
    sink_max_files: int = Field(default=0, alias="SINK_MAX_FILES")
    sink_json: bool = Field(default=False, alias="SINK_JSON")
    sink_json_options: dict[str, bool] = Field(
        default_factory=dict, alias="SINK_JSON_OPTIONS"
    )
    sink_format: str = Field(default=DEFAULT_FORMAT, alias="SINK_FORMAT")
    sink_slow_sql_time: float = Field(default=1000.0, alias="SINK_SLOW_SQL_TIME")
    sink_action_filters: list[str] = Field(
        default_factory=list, alias="SINK_ACTION_FILTERS"
    )
    sink_db_table: str = Field(default="sys_log", alias="SINK_DB_TABLE")
    sink_db_connect: str = Field(default="default", alias="SINK_DB_CONNECT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "allow"
        populate_by_name = True

    @classmethod
    def from_yaml(cls, config_path: str) -> "Settings":
        """Load settings from YAML file."""
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}
        return cls(**config_data)

    def sink_options(self) -> dict[str, Any]:
        """Raw driver options, keyed the way SinkConfig expects them."""
        return {
            "time_format": self.sink_time_format,
            "single": self.sink_single,
            "file_size": self.sink_file_size,
            "path": self.sink_path,
            "apart_level": self.sink_apart_level,
            "max_files": self.sink_max_files,
            "json": self.sink_json,
            "json_options": self.sink_json_options,
            "format": self.sink_format,
            "slow_sql_time": self.sink_slow_sql_time,
            "action_filters": self.sink_action_filters,
            "db_table": self.sink_db_table,
            "db_connect": self.sink_db_connect,
        }

    def sink_config(self) -> SinkConfig:
        """Resolve the immutable sink configuration.

        Raises:
            ConfigurationError: If a sink option is invalid
        """
        return SinkConfig.from_options(self.sink_options(), self.runtime_path)


def get_settings() -> Settings:
    """Get settings instance - requires CONFIG environment variable.

    Raises:
        ValueError: If CONFIG environment variable is not set
        FileNotFoundError: If config file doesn't exist
    """
    config_path = os.getenv("CONFIG")

    if not config_path:
        raise ValueError(
            "CONFIG environment variable is not set!\n"
            "\n"
            "Please set it to your configuration file path:\n"
            "  export CONFIG=resources/config/local.yaml"
        )

    if not os.path.exists(config_path):
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Please check the CONFIG environment variable points to a valid file."
        )

    return Settings.from_yaml(config_path)
