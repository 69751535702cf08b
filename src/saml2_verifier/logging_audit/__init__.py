"""Logging Audit module.

This module provides logging configuration and audit trail functionality.
"""

from .audit import log_audit_event, log_response_document
from .formatters import SensitiveDataRedactingFormatter
from .logger import configure_logging, configure_stage_logging, get_logger, set_stage_log_level

__all__ = [
    "configure_logging",
    "configure_stage_logging",
    "get_logger",
    "log_audit_event",
    "log_response_document",
    "set_stage_log_level",
    "SensitiveDataRedactingFormatter",
]
