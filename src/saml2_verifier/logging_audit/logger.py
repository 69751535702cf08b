"""Logging configuration and logger factory for the SAML2 verifier.

This module provides centralized logging configuration with support for:
- Console and file handlers with different log levels
- Log rotation to prevent unbounded file growth
- Redaction of certificates, signature values and identities via custom formatters
- Environment variable configuration
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

from .formatters import SensitiveDataRedactingFormatter

# Constants
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "saml2-verifier.log"
LOG_FILE_ENV_VAR = "SAML2_VERIFIER_LOG_FILE"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5

# Track if logging has been configured
_logging_configured = False

# Pipeline stage logger names
STAGE_LOGGERS = {
    "credential": "saml2_verifier.saml.certificate_manager",
    "decode": "saml2_verifier.saml.decoder",
    "repair": "saml2_verifier.saml.repair",
    "parse": "saml2_verifier.saml.parser",
    "verify": "saml2_verifier.saml.verifier",
}

# Module-level logger for this module
logger = logging.getLogger(__name__)


def _numeric_level(level: str) -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    return numeric_level


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_sensitive: bool = False,
) -> None:
    """Configure logging for the SAML2 verifier.

    Sets up both console and file handlers with appropriate log levels and formatting.
    This function is idempotent - it can be called multiple times safely.

    Args:
        level: Log level for console output (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               File handler always uses DEBUG level.
        log_file: Path to log file. If None, uses DEFAULT_LOG_FILE or
                 SAML2_VERIFIER_LOG_FILE environment variable if set.
        redact_sensitive: Whether to redact certificates, signature values,
                 e-mail addresses and long base64 payloads from logs

    Raises:
        ValueError: If invalid log level is provided
        RuntimeError: If log directory cannot be created

    Example:
        >>> configure_logging(level="DEBUG", redact_sensitive=True)
        >>> configure_logging(level="INFO", log_file=Path("custom/verifier.log"))
    """
    global _logging_configured

    numeric_level = _numeric_level(level)

    if log_file is None:
        env_log_file = os.environ.get(LOG_FILE_ENV_VAR)
        log_file = Path(env_log_file) if env_log_file else DEFAULT_LOG_FILE

    log_dir = log_file.parent
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        raise RuntimeError(
            f"Failed to create log directory: {log_dir}. "
            f"Ensure write permissions are available. Error: {e}"
        ) from e

    root_logger = logging.getLogger()

    # Replace handlers installed by an earlier call
    if _logging_configured:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    root_logger.setLevel(logging.DEBUG)

    formatter = SensitiveDataRedactingFormatter(
        fmt=DEFAULT_LOG_FORMAT,
        redact_sensitive=redact_sensitive,
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    try:
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except (OSError, PermissionError) as e:
        root_logger.warning(
            f"Failed to create file handler for {log_file}: {e}. "
            f"Logging to console only."
        )

    _logging_configured = True


def get_logger(module_name: str) -> logging.Logger:
    """Get a logger for the specified module.

    Args:
        module_name: Name of the module, typically __name__

    Returns:
        Logger instance for the module
    """
    return logging.getLogger(module_name)


def set_stage_log_level(stage: str, level: str) -> None:
    """Set the log level of one pipeline stage.

    Useful for tracing a single stage (for example the verifier) without
    turning on DEBUG output everywhere.

    Args:
        stage: Stage name (credential, decode, repair, parse, verify)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Raises:
        ValueError: If stage or level is invalid

    Example:
        >>> set_stage_log_level("verify", "DEBUG")
    """
    if stage not in STAGE_LOGGERS:
        raise ValueError(
            f"Unknown stage: {stage}. "
            f"Must be one of: {', '.join(STAGE_LOGGERS.keys())}"
        )

    numeric_level = _numeric_level(level)
    logger_name = STAGE_LOGGERS[stage]
    logging.getLogger(logger_name).setLevel(numeric_level)
    logger.debug("Set %s logger level to %s", logger_name, level.upper())


def configure_stage_logging(stage_levels: Dict[str, str]) -> None:
    """Apply a mapping of stage name to log level.

    Args:
        stage_levels: e.g. ``{"verify": "DEBUG", "repair": "WARNING"}``

    Raises:
        ValueError: If any stage or level is invalid
    """
    for stage, level in stage_levels.items():
        set_stage_log_level(stage, level)
