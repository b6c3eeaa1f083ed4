"""
Logging utilities for directory management, path resolution, and environment detection.
"""

import os
import sys
import threading
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

VALID_ENVIRONMENTS = ("unit_test", "production", "local")

# Cache of directories already created in this process
_created_dirs: set[str] = set()
_created_dirs_lock = threading.Lock()


def ensure_log_directory(log_path: Path) -> None:
    """
    Thread-safe directory creation for log files.

    Ensures that the parent directory of a log file exists. Failures are logged
    but never raised, logging must not take the application down.

    Args:
        log_path: Path to the log file (directory will be created for parent)
    """
    if not log_path or not log_path.parent:
        return

    dir_str = str(log_path.parent)
    with _created_dirs_lock:
        if dir_str in _created_dirs:
            return
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            _created_dirs.add(dir_str)
        except OSError as e:
            logger.warning(
                "Failed to create log directory",
                directory=dir_str,
                error=str(e),
                error_type=type(e).__name__,
            )


def resolve_log_base(log_base: str) -> Path:
    """
    Resolve log_base path to absolute path relative to project root.

    Args:
        log_base: Relative or absolute path to log directory

    Returns:
        Absolute path to log directory
    """
    log_path = Path(log_base)
    if log_path.is_absolute():
        return log_path

    current_dir = Path.cwd()
    for parent in [current_dir] + list(current_dir.parents):
        if (parent / "pyproject.toml").exists():
            return parent / log_path

    return current_dir / log_path


def detect_environment() -> str:
    """
    Detect the current environment based on various indicators.

    Returns:
        Environment name: "unit_test", "local", or "production"
    """
    if "pytest" in sys.modules or "pytest" in sys.argv[0]:
        return "unit_test"

    env = os.getenv("MEDOPS_ENV")
    if env and env in VALID_ENVIRONMENTS:
        return env

    logging_env = os.getenv("LOGGING_ENVIRONMENT", "")
    if logging_env in VALID_ENVIRONMENTS:
        return logging_env

    return "local"
