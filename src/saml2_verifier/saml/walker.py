"""Signature discovery over a parsed SAML2 Response."""

import logging
from typing import List

from ..models.response import ParsedResponse
from ..models.saml import SignatureLocation, SignatureRef

logger = logging.getLogger(__name__)


def collect_signatures(response: ParsedResponse) -> List[SignatureRef]:
    """Collect every signature that must be verified.

    The response-level signature comes first, followed by assertion signatures
    in document order. Unsigned assertions are skipped and encrypted assertions
    are never walked. An empty list is a valid result; deciding that it is a
    failure is left to the verifier.

    Args:
        response: Parsed response

    Returns:
        Ordered list of SignatureRef
    """
    refs: List[SignatureRef] = []

    if response.signature is not None:
        refs.append(
            SignatureRef(
                location=SignatureLocation.RESPONSE,
                assertion_index=None,
                signature=response.signature,
                signed_element=response.element,
            )
        )

    for index, assertion in enumerate(response.assertions):
        if assertion.signature is None:
            logger.debug(f"Assertion {index} ({assertion.assertion_id}) is not signed, skipping")
            continue
        refs.append(
            SignatureRef(
                location=SignatureLocation.ASSERTION,
                assertion_index=index,
                signature=assertion.signature,
                signed_element=assertion.element,
            )
        )

    if response.encrypted_assertions:
        logger.info(
            f"Skipping {len(response.encrypted_assertions)} encrypted assertion(s); "
            f"encrypted content is not decrypted or verified"
        )

    if not response.is_signed_anywhere:
        logger.debug(
            f"Response {response.response_id} has no response or assertion signature "
            f"({response.misplaced_signatures} misplaced root-level Signature(s))"
        )

    logger.debug(
        f"Collected {len(refs)} signature(s): {', '.join(ref.label for ref in refs) or 'none'}"
    )
    return refs
