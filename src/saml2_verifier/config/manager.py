"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from saml2_verifier.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from saml2_verifier.config.schema import Config, LoggingConfig, VerificationConfig
from saml2_verifier.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "SAML2_VERIFIER_"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (SAML2_VERIFIER_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> config.verification.repair_before_parse
        False
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "configuration validation failed",
            f"{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format.",
        ) from e


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If JSON is malformed
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                "invalid configuration file",
                f"Invalid JSON in config file: {config_path}. "
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}",
            ) from e
        except OSError as e:
            raise ConfigurationError(
                "invalid configuration file",
                f"Failed to read config file: {config_path}: {e}. "
                f"Fix: Check file permissions and path",
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "invalid configuration file",
                f"Config file {config_path} must contain a JSON object",
            )
        logger.info(f"Loaded configuration from {config_path}")
        return config_dict

    logger.info(f"Config file not found: {config_path}. Using default configuration.")
    # Deep copy so callers never mutate the defaults
    return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with SAML2_VERIFIER_ prefix.

    Supported variables: LOG_LEVEL, LOG_FILE, REDACT_SENSITIVE, CERT_PATH,
    REPAIR, PRETTY_PRINT, ALLOW_SHA1.

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied
    """
    # Logging section
    if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config_dict.setdefault("logging", {})["level"] = log_level
        logger.debug("Override: log_level from environment")

    if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config_dict.setdefault("logging", {})["log_file"] = log_file
        logger.debug("Override: log_file from environment")

    if redact := os.getenv(f"{ENV_PREFIX}REDACT_SENSITIVE"):
        config_dict.setdefault("logging", {})["redact_sensitive"] = _parse_bool(redact)
        logger.debug("Override: redact_sensitive from environment")

    # Verification section
    if cert_path := os.getenv(f"{ENV_PREFIX}CERT_PATH"):
        config_dict.setdefault("verification", {})["certificate_path"] = cert_path
        logger.debug("Override: certificate_path from environment")

    if repair := os.getenv(f"{ENV_PREFIX}REPAIR"):
        config_dict.setdefault("verification", {})["repair_before_parse"] = _parse_bool(repair)
        logger.debug("Override: repair_before_parse from environment")

    if pretty_print := os.getenv(f"{ENV_PREFIX}PRETTY_PRINT"):
        config_dict.setdefault("verification", {})["pretty_print"] = _parse_bool(pretty_print)
        logger.debug("Override: pretty_print from environment")

    if allow_sha1 := os.getenv(f"{ENV_PREFIX}ALLOW_SHA1"):
        config_dict.setdefault("verification", {})["allow_sha1"] = _parse_bool(allow_sha1)
        logger.debug("Override: allow_sha1 from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string.

    Args:
        value: String value to parse (case-insensitive)

    Returns:
        Boolean value
    """
    return value.lower() in ("true", "1", "yes", "on")


def get_logging_config(config: Config) -> LoggingConfig:
    """Get logging configuration."""
    return config.logging


def get_verification_config(config: Config) -> VerificationConfig:
    """Get verification configuration.

    Args:
        config: Configuration instance

    Returns:
        VerificationConfig instance

    Example:
        >>> config = load_config()
        >>> get_verification_config(config).pretty_print
        True
    """
    return config.verification
