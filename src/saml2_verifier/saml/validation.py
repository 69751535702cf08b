"""SAML2 Response verification pipeline.

This module wires the pipeline stages together:

    decode -> (repair) -> parse -> collect signatures -> verify -> result

and is the public entry point of the package. Every failure, classified or
not, is turned into an invalid Saml2Result; nothing escapes ``verify`` as an
exception.
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from ..logging_audit import log_audit_event, log_response_document
from ..models.response import ParsedResponse
from ..models.saml import Saml2Result, VerificationOutcome, VerificationRequest
from ..utils.exceptions import Saml2VerifierError, new_correlation_id
from .certificate_manager import load_credential
from .decoder import decode_envelope
from .parser import ensure_initialized, parse_response
from .result import build_failure_result, build_success_result
from .verifier import raise_for_outcomes, verify_signatures
from .walker import collect_signatures

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Verification pipeline stages, entered strictly in this order."""

    START = "start"
    CREDENTIAL = "credential"
    DECODING = "decoding"
    PARSING = "parsing"
    WALKING = "walking"
    VERIFYING = "verifying"
    DONE = "done"


@dataclass(frozen=True)
class Saml2Validator:
    """Immutable verification session bound to one trusted certificate.

    Attributes:
        certificate_bytes: Trusted certificate (PEM or DER)
        repair: Whether structural repair runs before parsing
        pretty_print: Whether successful results carry pretty-printed XML
        allow_sha1: Whether SHA1 signature and digest methods are accepted

    Example:
        >>> validator = Saml2Validator(cert_bytes).with_repair()
        >>> result = validator.validate(form["SAMLResponse"])
        >>> result.is_valid
        True
    """

    certificate_bytes: Optional[bytes]
    repair: bool = False
    pretty_print: bool = True
    allow_sha1: bool = True

    def with_repair(self, repair: bool = True) -> "Saml2Validator":
        """Return a new validator with structural repair switched on or off."""
        return replace(self, repair=repair)

    def validate(self, encoded_response: str) -> Saml2Result:
        """Verify one encoded response.

        Args:
            encoded_response: Base64-encoded SAML2 Response

        Returns:
            Saml2Result (never raises)
        """
        request = VerificationRequest(
            encoded_response=encoded_response,
            repair_before_parse=self.repair,
        )
        return run_pipeline(
            self.certificate_bytes,
            request,
            pretty_print=self.pretty_print,
            allow_sha1=self.allow_sha1,
        )


def _advance(current: PipelineStage, stage: PipelineStage) -> PipelineStage:
    logger.debug(f"Pipeline stage: {current.value} -> {stage.value}")
    return stage


def run_pipeline(
    certificate_bytes: Optional[bytes],
    request: VerificationRequest,
    pretty_print: bool = True,
    allow_sha1: bool = True,
) -> Saml2Result:
    """Run the verification pipeline for one request.

    Args:
        certificate_bytes: Trusted certificate (PEM or DER)
        request: Encoded response and repair flag
        pretty_print: Whether to include pretty-printed XML on success
        allow_sha1: Whether SHA1 signature and digest methods are accepted

    Returns:
        Saml2Result describing success or the first failing stage
    """
    ensure_initialized()

    start_time = time.time()
    stage = PipelineStage.START
    outcomes: List[VerificationOutcome] = []
    response: Optional[ParsedResponse] = None
    xml_bytes: Optional[bytes] = None

    try:
        stage = _advance(stage, PipelineStage.CREDENTIAL)
        credential = load_credential(certificate_bytes)

        stage = _advance(stage, PipelineStage.DECODING)
        xml_bytes = decode_envelope(request.encoded_response, request.repair_before_parse)

        stage = _advance(stage, PipelineStage.PARSING)
        response = parse_response(xml_bytes)

        stage = _advance(stage, PipelineStage.WALKING)
        refs = collect_signatures(response)

        stage = _advance(stage, PipelineStage.VERIFYING)
        outcomes = verify_signatures(refs, credential, allow_sha1=allow_sha1)
        raise_for_outcomes(outcomes)

    except Saml2VerifierError as e:
        logger.error(f"Verification failed during {stage.value}: {e}")
        return _failure(request, e, stage, outcomes, response, xml_bytes, start_time)

    except Exception as e:
        logger.error(
            f"Unexpected error during {stage.value}: {type(e).__name__}: {e}",
            exc_info=True,
        )
        return _failure(request, e, stage, outcomes, response, xml_bytes, start_time)

    stage = _advance(stage, PipelineStage.DONE)
    result = build_success_result(
        request.encoded_response, xml_bytes, outcomes, pretty_print=pretty_print
    )

    correlation_id = new_correlation_id()
    log_audit_event(
        "SAML2_VERIFIED",
        {
            "status": "success",
            "response_id": response.response_id,
            "stage": stage.value,
            "signature_count": len(outcomes),
            "verified_count": len(outcomes),
            "repair": request.repair_before_parse,
            "duration": time.time() - start_time,
            "correlation_id": correlation_id,
        },
    )
    log_response_document(
        request.encoded_response, result.response_b64_decoded, "success", correlation_id
    )
    return result


def _failure(
    request: VerificationRequest,
    exception: BaseException,
    stage: PipelineStage,
    outcomes: List[VerificationOutcome],
    response: Optional[ParsedResponse],
    xml_bytes: Optional[bytes],
    start_time: float,
) -> Saml2Result:
    correlation_id = new_correlation_id()
    result = build_failure_result(
        request.encoded_response, exception, outcomes, correlation_id=correlation_id
    )

    log_audit_event(
        "SAML2_REJECTED",
        {
            "status": "failure",
            "response_id": response.response_id if response else None,
            "stage": stage.value,
            "signature_count": len(outcomes),
            "verified_count": sum(1 for outcome in outcomes if outcome.is_verified),
            "repair": request.repair_before_parse,
            "duration": time.time() - start_time,
            "error_message": result.error.message,
            "correlation_id": correlation_id,
        },
    )
    log_response_document(
        request.encoded_response,
        xml_bytes.decode("utf-8", errors="replace") if xml_bytes is not None else None,
        "failure",
        correlation_id,
    )
    return result


def verify(
    certificate_bytes: Optional[bytes],
    encoded_response: str,
    repair: bool = False,
    allow_sha1: bool = True,
) -> Saml2Result:
    """Verify the signatures of a base64-encoded SAML2 Response.

    Args:
        certificate_bytes: Trusted X.509 certificate (PEM or DER)
        encoded_response: Base64-encoded samlp:Response
        repair: Move a hoisted assertion signature back into its Assertion
                before parsing
        allow_sha1: Accept rsa-sha1 signatures and sha1 digests

    Returns:
        Saml2Result; ``is_valid`` is True only if at least one signature was
        found and every signature verified

    Example:
        >>> result = verify(Path("idp.pem").read_bytes(), form["SAMLResponse"])
        >>> if not result.is_valid:
        ...     print(result.error.message)
    """
    validator = Saml2Validator(certificate_bytes, repair=repair, allow_sha1=allow_sha1)
    return validator.validate(encoded_response)
