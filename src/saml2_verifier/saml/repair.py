"""Structural repair of mis-nested assertion signatures.

Some identity providers emit the assertion's ds:Signature as a sibling of the
Assertion directly under the Response, instead of inside the Assertion it
signs. ``repair_signature_nesting`` moves the Signature that references the
first Assertion back into it. Nothing else in the document is changed.

Repair is best effort: whenever the document cannot be repaired the input bytes
are returned unchanged and the problem is logged.
"""

import logging
from typing import Optional

from lxml import etree

from .constants import ASSERTION_TAG, SIGNATURE_TAG
from .parser import parse_xml, signs_element

logger = logging.getLogger(__name__)


def find_misplaced_signature(
    root: etree._Element, assertion: Optional[etree._Element] = None
) -> Optional[etree._Element]:
    """Return the first root-level Signature that does not sign the root.

    Args:
        root: Response root element
        assertion: If given, only a Signature whose reference targets this
            assertion is returned

    Returns:
        The misplaced ds:Signature element, or None
    """
    for child in root:
        if child.tag != SIGNATURE_TAG or signs_element(child, root):
            continue
        if assertion is None or signs_element(child, assertion):
            return child
    return None


def find_first_assertion(root: etree._Element) -> Optional[etree._Element]:
    for child in root:
        if child.tag == ASSERTION_TAG:
            return child
    return None


def repair_signature_nesting(xml_bytes: bytes) -> bytes:
    """Move a hoisted assertion signature back into its Assertion.

    Steps:
        1. Parse the document with the hardened parser
        2. Check there is a misplaced root-level ds:Signature at all
        3. Find the first root-level saml:Assertion; it must not hold a
           ds:Signature already
        4. Pick the first misplaced signature whose reference targets that
           assertion's ID
        5. Detach the signature and append it as the assertion's last child
        6. Serialize without an XML declaration

    Only one signature is moved, and only into an unsigned first assertion, so
    applying the repair twice yields the same bytes as applying it once. Hoisted
    signatures of later assertions stay where they are.

    Args:
        xml_bytes: Decoded response XML

    Returns:
        Repaired XML bytes, or ``xml_bytes`` unchanged if nothing was repaired

    Example:
        >>> fixed = repair_signature_nesting(decoded)
        >>> parse_response(fixed).assertions[0].signature is not None
        True
    """
    try:
        root = parse_xml(xml_bytes)
    except Exception as e:
        logger.warning(f"Repair skipped, document could not be parsed: {e}")
        return xml_bytes

    try:
        if find_misplaced_signature(root) is None:
            logger.debug("Repair not needed: no misplaced Signature under the root")
            return xml_bytes

        assertion = find_first_assertion(root)
        if assertion is None:
            logger.warning("Repair skipped: misplaced Signature found but no Assertion to hold it")
            return xml_bytes

        assertion_id = assertion.get("ID")
        if assertion.find(SIGNATURE_TAG) is not None:
            logger.debug(f"Repair not needed: Assertion {assertion_id} already holds a Signature")
            return xml_bytes

        signature = find_misplaced_signature(root, assertion)
        if signature is None:
            logger.warning(
                f"Repair skipped: no root-level Signature references Assertion {assertion_id}"
            )
            return xml_bytes

        root.remove(signature)
        # lxml moves the tail with the element; it must not end up inside the assertion
        signature.tail = None
        assertion.append(signature)
        repaired = etree.tostring(root, xml_declaration=False)
    except Exception as e:
        logger.warning(f"Repair failed, using original document: {e}")
        return xml_bytes

    logger.info(f"Repaired signature nesting: moved Signature into Assertion {assertion_id}")
    return repaired
