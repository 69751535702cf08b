"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_STAGES = ["credential", "decode", "repair", "parse", "verify"]


def _validate_level(v: str) -> str:
    v_upper = v.upper()
    if v_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )
    return v_upper


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_sensitive: Whether to redact certificates, signature values and
            identities from logs
        stage_levels: Optional per-stage log levels, e.g. ``{"verify": "DEBUG"}``
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/saml2-verifier.log"),
        description="Log file path"
    )
    redact_sensitive: bool = Field(
        default=False,
        description="Redact certificates, signature values and identities from logs"
    )
    stage_levels: Dict[str, str] = Field(
        default_factory=dict,
        description="Per-stage log levels (credential, decode, repair, parse, verify)"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Args:
            v: Log level string

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        return _validate_level(v)

    @field_validator("stage_levels")
    @classmethod
    def validate_stage_levels(cls, v: Dict[str, str]) -> Dict[str, str]:
        validated = {}
        for stage, level in v.items():
            if stage not in VALID_STAGES:
                raise ValueError(
                    f"Invalid stage: {stage}. Must be one of: {', '.join(VALID_STAGES)}"
                )
            validated[stage] = _validate_level(level)
        return validated


class VerificationConfig(BaseModel):
    """Configuration for response verification.

    Attributes:
        certificate_path: Default trusted certificate (PEM or DER)
        repair_before_parse: Run structural repair before parsing
        pretty_print: Include pretty-printed XML in successful results
        allow_sha1: Accept rsa-sha1 signatures and sha1 digests
    """

    certificate_path: Optional[Path] = None
    repair_before_parse: bool = False
    pretty_print: bool = True
    allow_sha1: bool = True

    @field_validator("certificate_path")
    @classmethod
    def validate_certificate_suffix(cls, v: Optional[Path]) -> Optional[Path]:
        if v is None:
            return v
        valid_suffixes = [".pem", ".crt", ".cer", ".der"]
        if v.suffix.lower() not in valid_suffixes:
            raise ValueError(
                f"Invalid certificate_path: {v}. "
                f"Expected one of: {', '.join(valid_suffixes)}"
            )
        return v


class Config(BaseModel):
    """Root configuration model.

    Attributes:
        logging: Logging configuration
        verification: Verification configuration

    Example:
        >>> config = Config(verification=VerificationConfig(repair_before_parse=True))
        >>> config.verification.repair_before_parse
        True
    """

    logging: LoggingConfig = LoggingConfig()
    verification: VerificationConfig = VerificationConfig()
