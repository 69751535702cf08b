"""Construction of the terminal Saml2Result."""

import logging
from typing import Optional, Sequence

from lxml import etree

from ..models.saml import Saml2Result, VerificationOutcome
from ..utils.exceptions import create_error_descriptor
from .parser import parse_xml

logger = logging.getLogger(__name__)


def pretty_format(xml_bytes: bytes) -> Optional[str]:
    """Pretty-print XML with two-space indentation.

    Args:
        xml_bytes: XML document

    Returns:
        Indented XML text, or None if the document cannot be re-parsed
    """
    try:
        root = parse_xml(xml_bytes, remove_blank_text=True)
        return etree.tostring(root, pretty_print=True, encoding="unicode")
    except Exception as e:
        logger.warning(f"Pretty printing failed, omitting formatted output: {e}")
        return None


def build_success_result(
    encoded_response: str,
    xml_bytes: bytes,
    outcomes: Sequence[VerificationOutcome] = (),
    pretty_print: bool = True,
) -> Saml2Result:
    """Build a valid result carrying the decoded and formatted response.

    Args:
        encoded_response: Encoded response exactly as received
        xml_bytes: Decoded (possibly repaired) response bytes
        outcomes: Per-signature outcomes
        pretty_print: Whether to include the pretty-printed XML

    Returns:
        Saml2Result with ``is_valid=True``
    """
    return Saml2Result(
        is_valid=True,
        response_raw=encoded_response,
        response_b64_decoded=xml_bytes.decode("utf-8", errors="replace"),
        response_b64_pretty_format=pretty_format(xml_bytes) if pretty_print else None,
        outcomes=tuple(outcomes),
    )


def build_failure_result(
    encoded_response: str,
    exception: BaseException,
    outcomes: Sequence[VerificationOutcome] = (),
    correlation_id: Optional[str] = None,
) -> Saml2Result:
    """Build an invalid result from the exception that stopped the pipeline.

    Decoded and formatted XML are never included in a failure result.

    Args:
        encoded_response: Encoded response exactly as received
        exception: Failure raised by a pipeline stage
        outcomes: Outcomes gathered before the failure, if any
        correlation_id: Optional correlation id for the error descriptor

    Returns:
        Saml2Result with ``is_valid=False`` and an ErrorDescriptor
    """
    return Saml2Result(
        is_valid=False,
        response_raw=encoded_response,
        error=create_error_descriptor(exception, correlation_id),
        outcomes=tuple(outcomes),
    )
