"""
Structlog-based logging configuration for MedOps.

This is the main entry point for the logging system. All modules obtain their
logger through get_logger() and log with keyword context:

    from medops.structured_logging.enhanced_logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Dashboard pushed", today_patients=3)
"""

import json
import re
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from medops.structured_logging.logging_file_setup import setup_enhanced_file_logging
from medops.structured_logging.logging_processors import add_correlation_id, sanitize_sensitive_data
from medops.structured_logging.logging_utilities import detect_environment

logger = structlog.get_logger(__name__)

_ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class _LoggingState:
    """State container for logging initialization to avoid global statements."""

    initialized: bool = False
    signature: str | None = None


_logging_state = _LoggingState()


def _strip_ansi_renderer(bound_logger: Any, name: str, event_dict: dict[str, Any]) -> str:
    """Render key-value pairs and strip ANSI escape sequences."""
    try:
        formatted = structlog.processors.KeyValueRenderer(key_order=["event"])(bound_logger, name, event_dict)
        return _ANSI_ESCAPE.sub("", formatted)
    except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: a renderer failure must not crash the caller
        return f"Logging renderer error: {type(e).__name__}: {str(e)}"


def configure_enhanced_structlog(
    environment: str | None = None,
    log_level: str = "INFO",
    log_config: dict[str, Any] | None = None,
) -> None:
    """
    Configure structlog with redaction, correlation IDs and file output.

    Args:
        environment: Environment name (auto-detected if None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_config: Logging configuration dictionary
    """
    if environment is None:
        environment = detect_environment()

    processors = [
        sanitize_sensitive_data,
        add_correlation_id,
        merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        _strip_ansi_renderer,
    ]

    if log_config and not log_config.get("disable_logging", False):
        setup_enhanced_file_logging(environment, log_config, log_level)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_enhanced_logging(config: dict[str, Any], *, force_reconfigure: bool = False) -> None:
    """
    Set up logging from the application configuration dictionary.

    Args:
        config: Configuration dictionary with a "logging" section
        force_reconfigure: When True, reconfigure even if already initialized
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _logging_state.initialized and not force_reconfigure:
        get_logger("medops.structured_logging.setup").debug(
            "setup_enhanced_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment", detect_environment())
    log_level = logging_config.get("level", "INFO")

    if logging_config.get("disable_logging", False):
        configure_enhanced_structlog(environment, log_level, {"disable_logging": True})
    else:
        configure_enhanced_structlog(environment, log_level, logging_config)
        get_logger("medops.structured_logging.setup").info(
            "Logging system initialized",
            environment=environment,
            log_level=log_level,
            log_base=logging_config.get("log_base", "logs"),
        )

    _logging_state.initialized = True
    _logging_state.signature = config_signature


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)
