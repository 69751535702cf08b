"""Custom exception classes for the SAML2 verifier.

All exceptions inherit from Saml2VerifierError so the verification pipeline can
catch every classified failure at a single boundary and turn it into an
ErrorDescriptor instead of letting it escape to the caller.
"""

import time
import uuid
from typing import Optional

from ..models.saml import ErrorDescriptor


class Saml2VerifierError(Exception):
    """Base exception for all SAML2 verifier custom exceptions.

    Every classified failure carries a short, stable ``message`` and a free-form
    ``detail`` string (usually the text of the underlying library error).

    Attributes:
        message: Stable, user-facing description of the failure
        detail: Technical detail from the stage that failed (may be empty)
    """

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message if not detail else f"{message}: {detail}")
        self.message = message
        self.detail = detail


class ConfigurationError(Saml2VerifierError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class CredentialError(Saml2VerifierError):
    """Raised when the trusted certificate is missing or cannot be decoded.

    Examples:
        - Empty certificate bytes
        - Bytes that are neither a PEM nor a DER X.509 certificate
        - Certificate file not found
    """

    pass


class DecodeError(Saml2VerifierError):
    """Raised when the encoded response envelope is not valid base64.

    Only raised when structural repair is not requested; the repair path
    degrades silently instead.
    """

    pass


class ParseError(Saml2VerifierError):
    """Raised when decoded bytes are not a well-formed, bindable SAML2 Response.

    Examples:
        - Unclosed tags or invalid characters
        - Document declares a DOCTYPE
        - Root element is not samlp:Response
    """

    pass


class SignatureError(Saml2VerifierError):
    """Base class for signature verification failures."""

    pass


class SignatureMissingError(SignatureError):
    """Raised when a signature expected for verification is absent.

    Examples:
        - Response without a response-level or assertion-level signature
        - Assertion signature hoisted out of its Assertion (unrepaired)
    """

    pass


class SignatureInvalidError(SignatureError):
    """Raised when cryptographic verification rejected one or more signatures.

    Examples:
        - Response signed with a key that does not match the trusted certificate
        - Signed content modified after signing (digest mismatch)
        - Malformed Signature element
    """

    pass


def new_correlation_id() -> str:
    """Generate a fresh correlation id of the form ``<uuid4>-<epoch millis>``."""
    return f"{uuid.uuid4()}-{int(time.time() * 1000)}"


def create_error_descriptor(
    exception: BaseException, correlation_id: Optional[str] = None
) -> ErrorDescriptor:
    """Create a structured error descriptor from an exception.

    Classified errors keep their own message and detail. Anything else is
    reported as an unexpected verification error with the exception text as
    detail, so callers always see the same descriptor shape.

    Args:
        exception: Exception raised by a pipeline stage
        correlation_id: Optional correlation id (a new one is generated if omitted)

    Returns:
        ErrorDescriptor with message, detail, correlation id and remediation

    Example:
        >>> descriptor = create_error_descriptor(CredentialError("certificate required"))
        >>> descriptor.message
        'certificate required'
    """
    if isinstance(exception, Saml2VerifierError):
        message = exception.message
        detail = exception.detail
    else:
        message = "unexpected verification error"
        detail = f"{type(exception).__name__}: {exception}"

    return ErrorDescriptor(
        message=message,
        detail=detail,
        correlation_id=correlation_id or new_correlation_id(),
        error_type=type(exception).__name__,
        remediation=_generate_remediation(exception),
    )


def _generate_remediation(exception: BaseException) -> str:
    """Generate an actionable remediation message for an error.

    Args:
        exception: Exception that occurred

    Returns:
        Actionable remediation message
    """
    if isinstance(exception, CredentialError):
        return (
            "Provide the identity provider's signing certificate as PEM or DER bytes. "
            "Check the certificate path and that the file is not empty."
        )

    if isinstance(exception, DecodeError):
        return (
            "The SAMLResponse value is not valid base64. Make sure the form field "
            "was URL-decoded before verification."
        )

    if isinstance(exception, ParseError):
        return (
            "The decoded document is not a SAML2 Response. Inspect the decoded XML "
            "and confirm the root element is samlp:Response."
        )

    if isinstance(exception, SignatureMissingError):
        return (
            "No verifiable signature was found. If the Signature element sits next to "
            "the Assertion instead of inside it, retry with repair enabled."
        )

    if isinstance(exception, SignatureInvalidError):
        return (
            "Signature verification failed. Confirm the certificate belongs to the "
            "issuer and that the response was not modified in transit."
        )

    if isinstance(exception, ConfigurationError):
        return (
            "Configuration error. Check config/config.json and SAML2_VERIFIER_* "
            "environment variables for invalid values."
        )

    return "Review the error detail and the log file for the full traceback."
