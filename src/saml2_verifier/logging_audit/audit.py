"""Audit trail functionality for the SAML2 verifier.

This module provides structured audit logging for every verification performed
by the pipeline.
"""

import time
import uuid
from typing import Any, Dict, Optional

from .logger import get_logger

logger = get_logger(__name__)


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields. Audit events are
    logged at INFO level for successful verifications and ERROR level for
    failures.

    Args:
        event_type: Type of event (e.g., "SAML2_VERIFIED", "SAML2_REJECTED")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - response_id: Response/@ID (if the response was parsed)
                - stage: Pipeline stage that finished or failed
                - signature_count: Number of signatures collected
                - verified_count: Number of signatures verified
                - repair: Whether structural repair was requested
                - duration: Verification duration in seconds
                - error_message: Error details (if status is failure)
                - correlation_id: Correlation ID of the result

    Example:
        >>> log_audit_event("SAML2_VERIFIED", {
        ...     "status": "success",
        ...     "response_id": "_resp-1",
        ...     "signature_count": 2,
        ...     "duration": 0.04,
        ... })
    """
    details = dict(details)

    if "timestamp" not in details:
        details["timestamp"] = time.time()

    if "correlation_id" not in details:
        details["correlation_id"] = str(uuid.uuid4())

    message_parts = [f"AUDIT [{event_type}]"]

    field_order = [
        "status",
        "response_id",
        "stage",
        "signature_count",
        "verified_count",
        "repair",
        "duration",
        "error_message",
        "correlation_id",
    ]

    for field in field_order:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in field_order and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    status = details.get("status", "unknown")
    if status == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)


def log_response_document(
    encoded_response: str,
    decoded: Optional[str],
    status: str = "success",
    correlation_id: Optional[str] = None,
) -> None:
    """Log the received and decoded response documents at DEBUG level.

    Args:
        encoded_response: Encoded response as received
        decoded: Decoded XML text (None if decoding never happened)
        status: Verification status ("success" or "failure")
        correlation_id: Correlation ID shared with the audit event

    Example:
        >>> log_response_document(encoded, decoded_xml, "success")
    """
    correlation_id = correlation_id or str(uuid.uuid4())

    logger.debug(
        f"RESPONSE [{status}] | "
        f"correlation_id={correlation_id} | "
        f"encoded_size={len(encoded_response or '')} chars | "
        f"decoded_size={len(decoded) if decoded is not None else 0} chars"
    )

    if decoded is not None:
        logger.debug(
            f"RESPONSE DOCUMENT | correlation_id={correlation_id}\n{decoded}"
        )
