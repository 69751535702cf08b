"""Models module.

This module provides data models and dataclasses for the verification pipeline.
"""

from saml2_verifier.models.response import (
    Assertion,
    EncryptedAssertion,
    ParsedResponse,
    SignatureNode,
)
from saml2_verifier.models.saml import (
    CertificateInfo,
    Credential,
    ErrorDescriptor,
    OutcomeStatus,
    Saml2Result,
    SignatureLocation,
    SignatureRef,
    VerificationOutcome,
    VerificationRequest,
)

__all__ = [
    "Assertion",
    "CertificateInfo",
    "Credential",
    "EncryptedAssertion",
    "ErrorDescriptor",
    "OutcomeStatus",
    "ParsedResponse",
    "Saml2Result",
    "SignatureLocation",
    "SignatureNode",
    "SignatureRef",
    "VerificationOutcome",
    "VerificationRequest",
]
