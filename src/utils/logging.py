"""Logging configuration for the interview engine."""

import logging
import sys

# Logger name for the application (CLI and event log output)
LOGGER_NAME = "expert_interview"

# Module loggers are created with logging.getLogger(__name__) under this package
PACKAGE_LOGGER_NAME = "src"

# Default log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("LiteLLM", "litellm", "httpx")

# Track if logging has been configured
_configured = False


def configure_logging(
    level: str | None = None,
    format_string: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
) -> logging.Logger:
    """Configure and return the main application logger.

    The same stderr handler is attached to the application logger and to the
    package logger so module-level loggers share one output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to INFO if not specified.
        format_string: Format string for log messages.
        date_format: Format string for timestamps.

    Returns:
        The configured root application logger.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)

    if level is None:
        level = "INFO"
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger.setLevel(log_level)
    package_logger.setLevel(log_level)

    if not _configured:
        logger.handlers.clear()
        package_logger.handlers.clear()

        formatter = logging.Formatter(format_string, datefmt=date_format)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)

        for target in (logger, package_logger):
            target.addHandler(console_handler)
            target.propagate = False

        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

        _configured = True
    else:
        for handler in logger.handlers:
            handler.setLevel(log_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module.

    Args:
        name: The module name (will be prefixed with 'expert_interview.').

    Returns:
        A child logger for the module.
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Reset logging configuration (useful for testing)."""
    global _configured

    for name in (LOGGER_NAME, PACKAGE_LOGGER_NAME):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    _configured = False
