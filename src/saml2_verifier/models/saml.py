"""Data models for the SAML2 verification pipeline.

This module defines dataclasses for the values that flow between pipeline
stages: the trusted credential, the verification request, signature
references and outcomes, and the terminal Saml2Result.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from cryptography import x509

from .response import SignatureNode


@dataclass(frozen=True)
class CertificateInfo:
    """Certificate information for display and logging.

    Contains extracted metadata from X.509 certificates without
    exposing key material.

    Attributes:
        subject: Certificate subject Distinguished Name (DN)
        issuer: Certificate issuer Distinguished Name (DN)
        not_before: Certificate validity start date
        not_after: Certificate expiration date
        serial_number: Certificate serial number
        key_size: Public key size in bits (e.g., 2048, 4096)
    """

    subject: str
    issuer: str
    not_before: datetime
    not_after: datetime
    serial_number: int
    key_size: Optional[int]


@dataclass(frozen=True)
class Credential:
    """Verification credential derived from a trusted X.509 certificate.

    Created once per verification session and never mutated.

    Attributes:
        certificate: Decoded X.509 certificate
        public_key: Public key extracted from the certificate
        info: Extracted certificate information
    """

    certificate: x509.Certificate
    public_key: Any
    info: CertificateInfo


@dataclass(frozen=True)
class VerificationRequest:
    """A single verification request.

    Attributes:
        encoded_response: Base64-encoded SAML2 Response envelope
        repair_before_parse: Whether structural repair runs before parsing
    """

    encoded_response: str
    repair_before_parse: bool = False


class SignatureLocation(Enum):
    """Where a collected signature lives within the response."""

    RESPONSE = "response"
    ASSERTION = "assertion"


@dataclass(frozen=True)
class SignatureRef:
    """Reference to one signature that must be verified.

    Attributes:
        location: RESPONSE for the root signature, ASSERTION otherwise
        assertion_index: Index of the assertion (None for the root signature)
        signature: Bound signature node (None only on contract violation)
        signed_element: lxml element that carries the signature
    """

    location: SignatureLocation
    assertion_index: Optional[int]
    signature: Optional[SignatureNode]
    signed_element: Any

    @property
    def label(self) -> str:
        """Human readable location, e.g. ``response`` or ``assertion[0]``."""
        if self.location is SignatureLocation.RESPONSE:
            return "response"
        return f"assertion[{self.assertion_index}]"


class OutcomeStatus(Enum):
    """Result of verifying one signature."""

    VERIFIED = "verified"
    FAILED = "failed"


@dataclass(frozen=True)
class VerificationOutcome:
    """Outcome of verifying a single SignatureRef.

    Attributes:
        ref: The signature reference that was verified
        status: VERIFIED or FAILED
        reason: Failure reason (None when verified)
        missing: True when the failure is an absent signature
    """

    ref: SignatureRef
    status: OutcomeStatus
    reason: Optional[str] = None
    missing: bool = False

    @property
    def is_verified(self) -> bool:
        return self.status is OutcomeStatus.VERIFIED

    @classmethod
    def verified(cls, ref: SignatureRef) -> "VerificationOutcome":
        return cls(ref=ref, status=OutcomeStatus.VERIFIED)

    @classmethod
    def failed(
        cls, ref: SignatureRef, reason: str, missing: bool = False
    ) -> "VerificationOutcome":
        return cls(ref=ref, status=OutcomeStatus.FAILED, reason=reason, missing=missing)


@dataclass(frozen=True)
class ErrorDescriptor:
    """Structured error information attached to a failed Saml2Result.

    Attributes:
        message: Stable error message of the failing stage
        detail: Technical detail from the underlying failure
        correlation_id: Fresh id of the form ``<uuid4>-<epoch millis>``
        error_type: Exception class name (e.g., "DecodeError")
        remediation: Actionable guidance for resolving the error
    """

    message: str
    detail: str
    correlation_id: str
    error_type: str = ""
    remediation: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "message": self.message,
            "detail": self.detail,
            "correlationId": self.correlation_id,
        }


@dataclass(frozen=True)
class Saml2Result:
    """Terminal result of one verification.

    Attributes:
        is_valid: True only if every collected signature verified
        response_raw: The encoded response exactly as received
        response_b64_decoded: Decoded (possibly repaired) XML text, success only
        response_b64_pretty_format: Pretty-printed decoded XML, success only
        error: Error descriptor, failure only
        outcomes: Per-signature outcomes gathered before the result was built

    Example:
        >>> result = verify(cert_bytes, encoded_response)
        >>> if not result.is_valid:
        ...     print(result.error.message)
    """

    is_valid: bool
    response_raw: str
    response_b64_decoded: Optional[str] = None
    response_b64_pretty_format: Optional[str] = None
    error: Optional[ErrorDescriptor] = None
    outcomes: Tuple[VerificationOutcome, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Render the outward result contract with camelCase keys.

        Unset optional fields are omitted.
        """
        data: Dict[str, Any] = {
            "isValid": self.is_valid,
            "responseRaw": self.response_raw,
        }
        if self.response_b64_decoded is not None:
            data["responseB64Decoded"] = self.response_b64_decoded
        if self.response_b64_pretty_format is not None:
            data["responseB64PrettyFormat"] = self.response_b64_pretty_format
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data
