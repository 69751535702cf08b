"""XML signature verification module using signxml library.

This module verifies every collected SignatureRef against the trusted
credential. Each signature is checked independently: a failure is recorded as
an outcome and never stops the remaining signatures from being verified.
"""

import logging
from typing import Iterable, List, Optional

from lxml import etree
from signxml import (
    DigestAlgorithm,
    SignatureConfiguration,
    SignatureMethod,
    XMLVerifier,
)
from signxml.exceptions import (
    InvalidCertificate,
    InvalidDigest,
    InvalidInput,
    InvalidSignature,
)

from ..models.saml import Credential, SignatureRef, VerificationOutcome
from ..utils.exceptions import SignatureInvalidError, SignatureMissingError
from .certificate_manager import convert_to_pem
from .constants import (
    NAMESPACES,
    SIGNATURE_MISSING,
    SIGNATURE_NOT_FOUND,
    SIGNATURE_VALIDATION_FAILED,
)

logger = logging.getLogger(__name__)


def signature_configuration(allow_sha1: bool = True) -> SignatureConfiguration:
    """Build the signxml algorithm policy for enveloped signatures.

    signxml rejects SHA1 signature and digest methods by default. Many identity
    providers still sign with rsa-sha1, so SHA1 is accepted unless disabled.

    Args:
        allow_sha1: Accept SHA1-based signature and digest methods

    Returns:
        SignatureConfiguration expecting the Signature as a direct child of the
        signed element
    """
    if not allow_sha1:
        return SignatureConfiguration(location="./")
    return SignatureConfiguration(
        location="./",
        signature_methods=frozenset(SignatureMethod),
        digest_algorithms=frozenset(DigestAlgorithm),
    )


class SignatureVerifier:
    """Verify XML signatures against a trusted credential.

    Only the ds:Signature that is a direct child of the signed element is
    checked, so an assertion signature is never mistaken for the response
    signature (and vice versa).

    Attributes:
        credential: Trusted verification credential
        allow_sha1: Accept SHA1 signature and digest methods

    Example:
        >>> verifier = SignatureVerifier(load_credential(cert_bytes))
        >>> outcome = verifier.verify(ref)
        >>> outcome.is_verified
        True
    """

    def __init__(self, credential: Credential, allow_sha1: bool = True) -> None:
        self.credential = credential
        self.allow_sha1 = allow_sha1
        self._cert_pem = convert_to_pem(credential.certificate)
        self._config = signature_configuration(allow_sha1)

        logger.debug(f"SignatureVerifier initialized for {credential.info.subject}")

    def verify(self, ref: SignatureRef) -> VerificationOutcome:
        """Verify a single signature reference.

        Args:
            ref: Signature reference produced by the walker

        Returns:
            VERIFIED outcome, or FAILED outcome with the reason
        """
        if ref.signature is None:
            logger.warning(f"Signature missing for {ref.label}")
            return VerificationOutcome.failed(ref, SIGNATURE_MISSING, missing=True)

        try:
            data = etree.tostring(ref.signed_element)
            result = XMLVerifier().verify(
                data, x509_cert=self._cert_pem, expect_config=self._config
            )

        except InvalidDigest as e:
            logger.warning(
                f"Digest verification failed for {ref.label}: {e}. "
                f"Signed content has been modified after signing."
            )
            return VerificationOutcome.failed(ref, f"digest mismatch: {e}")

        # InvalidDigest and InvalidCertificate subclass InvalidSignature
        except InvalidCertificate as e:
            logger.warning(f"Certificate rejected while verifying {ref.label}: {e}")
            return VerificationOutcome.failed(ref, f"invalid certificate: {e}")

        except InvalidSignature as e:
            logger.warning(
                f"Signature verification failed for {ref.label}: {e}. "
                f"Content may be tampered or signed with a different certificate."
            )
            return VerificationOutcome.failed(ref, f"invalid signature: {e}")

        except InvalidInput as e:
            logger.warning(f"Malformed signature for {ref.label}: {e}")
            return VerificationOutcome.failed(ref, f"malformed signature: {e}")

        except Exception as e:
            logger.error(
                f"Unexpected error during signature verification for {ref.label}: {e}",
                exc_info=True,
            )
            return VerificationOutcome.failed(ref, f"verification error: {e}")

        verified_value = _signature_value(result.signature_xml)
        if verified_value != ref.signature.signature_value:
            logger.warning(
                f"Verified signature does not match the signature located for {ref.label}"
            )
            return VerificationOutcome.failed(
                ref, "verified signature is not the signature of the signed element"
            )

        logger.info(f"Signature verification successful: {ref.label}")
        return VerificationOutcome.verified(ref)


def _signature_value(signature: Optional[etree._Element]) -> Optional[str]:
    if signature is None:
        return None
    value = signature.findtext("ds:SignatureValue", namespaces=NAMESPACES)
    return "".join(value.split()) if value else None


def verify_signatures(
    refs: Iterable[SignatureRef], credential: Credential, allow_sha1: bool = True
) -> List[VerificationOutcome]:
    """Verify each signature reference in order.

    Args:
        refs: Signature references from the walker
        credential: Trusted verification credential
        allow_sha1: Accept SHA1 signature and digest methods

    Returns:
        One outcome per reference, in the same order
    """
    verifier = SignatureVerifier(credential, allow_sha1=allow_sha1)
    outcomes = [verifier.verify(ref) for ref in refs]

    verified = sum(1 for outcome in outcomes if outcome.is_verified)
    logger.debug(f"Verified {verified}/{len(outcomes)} signature(s)")
    return outcomes


def overall_pass(outcomes: List[VerificationOutcome]) -> bool:
    """Return True only if there is at least one outcome and all verified."""
    return bool(outcomes) and all(outcome.is_verified for outcome in outcomes)


def raise_for_outcomes(outcomes: List[VerificationOutcome]) -> None:
    """Raise the classified signature error for a failing set of outcomes.

    Args:
        outcomes: Outcomes from ``verify_signatures``

    Raises:
        SignatureMissingError: If there are no outcomes or a signature is missing
        SignatureInvalidError: If any signature failed verification
    """
    if not outcomes:
        raise SignatureMissingError(
            SIGNATURE_NOT_FOUND,
            "Response contains no response-level or assertion-level ds:Signature",
        )

    failures = [outcome for outcome in outcomes if not outcome.is_verified]
    if not failures:
        return

    detail = "; ".join(f"{outcome.ref.label}: {outcome.reason}" for outcome in failures)

    if any(outcome.missing for outcome in failures):
        raise SignatureMissingError(SIGNATURE_MISSING, detail)

    raise SignatureInvalidError(SIGNATURE_VALIDATION_FAILED, detail)
