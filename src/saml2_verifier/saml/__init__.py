"""SAML 2.0 response decoding, repair, parsing and signature verification.

This module provides functionality for:
- Loading the trusted certificate (PEM or DER) as a verification credential
- Decoding the base64 HTTP-POST envelope
- Repairing a hoisted assertion signature
- Parsing the response into a typed model with a hardened XML parser
- Verifying response and assertion signatures (using SignXML)
"""

from saml2_verifier.saml.certificate_manager import (
    check_expiration_warning,
    convert_to_pem,
    decode_certificate,
    get_certificate_info,
    load_certificate_file,
    load_credential,
)
from saml2_verifier.saml.decoder import decode_base64, decode_envelope
from saml2_verifier.saml.parser import (
    bind_response,
    ensure_initialized,
    parse_response,
    signs_element,
)
from saml2_verifier.saml.repair import repair_signature_nesting
from saml2_verifier.saml.result import (
    build_failure_result,
    build_success_result,
    pretty_format,
)
from saml2_verifier.saml.validation import (
    PipelineStage,
    Saml2Validator,
    run_pipeline,
    verify,
)
from saml2_verifier.saml.verifier import (
    SignatureVerifier,
    overall_pass,
    raise_for_outcomes,
    verify_signatures,
)
from saml2_verifier.saml.walker import collect_signatures

__all__ = [
    # Credential
    "check_expiration_warning",
    "convert_to_pem",
    "decode_certificate",
    "get_certificate_info",
    "load_certificate_file",
    "load_credential",
    # Decoding and repair
    "decode_base64",
    "decode_envelope",
    "repair_signature_nesting",
    # Parsing
    "bind_response",
    "ensure_initialized",
    "parse_response",
    "signs_element",
    # Signatures
    "collect_signatures",
    "SignatureVerifier",
    "overall_pass",
    "raise_for_outcomes",
    "verify_signatures",
    # Results and pipeline
    "build_failure_result",
    "build_success_result",
    "pretty_format",
    "PipelineStage",
    "Saml2Validator",
    "run_pipeline",
    "verify",
]
