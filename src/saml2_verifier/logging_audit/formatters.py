"""Custom log formatters for the SAML2 verifier.

This module provides specialized formatters for logging, including redaction of
key material and identities that appear in SAML documents.
"""

import logging
import re
from typing import List, Optional, Tuple


class SensitiveDataRedactingFormatter(logging.Formatter):
    """Formatter that redacts sensitive SAML content from log messages.

    Decoded responses are logged at DEBUG level and may carry embedded
    certificates, signature values and subject identifiers. When enabled, this
    formatter replaces them with fixed markers.

    Attributes:
        redact_sensitive: Whether to enable redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = SensitiveDataRedactingFormatter(redact_sensitive=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: Optional[str] = None,
        redact_sensitive: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_sensitive = redact_sensitive

        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # <ds:X509Certificate>MIIC...</ds:X509Certificate>
            (
                re.compile(r"(<(?:\w+:)?X509Certificate[^>]*>)[^<]*(</(?:\w+:)?X509Certificate>)"),
                r"\1[CERTIFICATE-REDACTED]\2",
            ),
            # <ds:SignatureValue>...</ds:SignatureValue>
            (
                re.compile(r"(<(?:\w+:)?SignatureValue[^>]*>)[^<]*(</(?:\w+:)?SignatureValue>)"),
                r"\1[SIGNATURE-REDACTED]\2",
            ),
            # E-mail addresses, commonly used as NameID
            (
                re.compile(r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b"),
                "[EMAIL-REDACTED]",
            ),
            # Long base64 runs such as encoded responses
            (
                re.compile(r"[A-Za-z0-9+/]{80,}={0,2}"),
                "[BASE64-REDACTED]",
            ),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional redaction.

        Args:
            record: Log record to format

        Returns:
            Formatted log message with sensitive content redacted if enabled
        """
        original = super().format(record)

        if self.redact_sensitive:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original
