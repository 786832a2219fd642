"""Shared configuration, logging and file helpers for quizbank commands."""

from __future__ import annotations

from .config import (
    CONFIG_FILENAME,
    ConfigError,
    QuizbankConfig,
    config_template,
    find_config,
    load_config,
    load_toml,
    merge_defaults,
    write_template,
)
from .files import (
    Discovery,
    FileRead,
    discover_files,
    parse_extensions,
    read_files,
    read_text_file,
)
from .logging import JsonLogFormatter, close_logger, configure_logger

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "QuizbankConfig",
    "config_template",
    "find_config",
    "load_config",
    "load_toml",
    "merge_defaults",
    "write_template",
    "Discovery",
    "FileRead",
    "discover_files",
    "parse_extensions",
    "read_files",
    "read_text_file",
    "JsonLogFormatter",
    "close_logger",
    "configure_logger",
]
