"""Config module.

This module provides configuration management functionality.
"""

from saml2_verifier.config.manager import (
    get_logging_config,
    get_verification_config,
    load_config,
)
from saml2_verifier.config.schema import (
    Config,
    LoggingConfig,
    VerificationConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    # Helper functions
    "get_logging_config",
    "get_verification_config",
    # Configuration models
    "Config",
    "LoggingConfig",
    "VerificationConfig",
]
