"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "log_file": "logs/saml2-verifier.log",
        # Redaction is opt-in
        "redact_sensitive": False,
        "stage_levels": {},
    },
    "verification": {
        # No default certificate - must be provided by user
        "certificate_path": None,
        "repair_before_parse": False,
        "pretty_print": True,
        "allow_sha1": True,
    },
}

DEFAULT_CONFIG_PATH = "config/config.json"
