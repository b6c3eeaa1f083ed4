"""
File logging setup for the enhanced logging system.

Configures one rotating file per log category plus an errors.log aggregator
and a console handler.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

from medops.structured_logging.logging_utilities import ensure_log_directory, resolve_log_base

# log file name -> logger name prefixes routed into it
LOG_CATEGORIES: dict[str, list[str]] = {
    "communications": ["medops.realtime"],
    "persistence": ["medops.persistence"],
    "services": ["medops.services", "medops.container"],
    "security": ["medops.utils.encryption"],
    "server": ["medops.config", "medops.exceptions", "medops.structured_logging"],
}

_SIZE_UNITS = {"KB": 1024, "MB": 1024 * 1024, "GB": 1024 * 1024 * 1024}

_installed_handlers: list[logging.Handler] = []


class LoggerNameFilter(logging.Filter):
    """Only pass records whose logger name starts with one of the prefixes."""

    def __init__(self, prefixes: list[str]):
        super().__init__()
        self.prefixes = tuple(prefixes)

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith(self.prefixes)


def parse_size(value: str | int) -> int:
    """Parse a size such as '10MB' into bytes."""
    if isinstance(value, int):
        return value
    text = value.strip().upper()
    for unit, factor in _SIZE_UNITS.items():
        if text.endswith(unit):
            return int(float(text[: -len(unit)]) * factor)
    return int(text)


def _remove_installed_handlers(root_logger: logging.Logger) -> None:
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()


def setup_enhanced_file_logging(environment: str, log_config: dict[str, Any], log_level: str) -> None:
    """
    Set up category log files, the error aggregator and the console handler.

    Calling this again replaces the handlers it installed previously.

    Args:
        environment: Environment name, used as the log sub-directory
        log_config: Logging configuration dictionary
        log_level: Minimum level for all handlers
    """
    env_log_dir = resolve_log_base(log_config.get("log_base", "logs")) / environment
    rotation = log_config.get("rotation", {})
    max_bytes = parse_size(rotation.get("max_size", "10MB"))
    backup_count = int(rotation.get("backup_count", 5))
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    _remove_installed_handlers(root_logger)
    root_logger.setLevel(level)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    for log_file, prefixes in LOG_CATEGORIES.items():
        log_path = env_log_dir / f"{log_file}.log"
        ensure_log_directory(log_path)
        handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(LoggerNameFilter(prefixes))
        root_logger.addHandler(handler)
        _installed_handlers.append(handler)

    errors_path = env_log_dir / "errors.log"
    ensure_log_directory(errors_path)
    errors_handler = RotatingFileHandler(errors_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    errors_handler.setLevel(logging.ERROR)
    errors_handler.setFormatter(formatter)
    root_logger.addHandler(errors_handler)
    _installed_handlers.append(errors_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)
