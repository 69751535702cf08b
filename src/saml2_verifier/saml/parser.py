"""SAML2 Response parsing and binding module.

This module parses decoded response bytes with a hardened lxml parser and binds
the resulting tree into the typed ParsedResponse model. Entity expansion,
DTD loading and network access are disabled, and documents that declare a
DOCTYPE are rejected outright.

The parser options and namespace registrations are set up once per process by
``ensure_initialized()``; lxml parser objects themselves are created per call
because they must not be shared between threads.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from lxml import etree

from ..models.response import Assertion, EncryptedAssertion, ParsedResponse, SignatureNode
from ..utils.exceptions import ParseError
from .constants import (
    ASSERTION_TAG,
    ENCRYPTED_ASSERTION_TAG,
    ISSUER_TAG,
    NAMESPACES,
    RESPONSE_FAILED,
    RESPONSE_TAG,
    SIGNATURE_TAG,
)

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_parser_options: Optional[Dict[str, Any]] = None


def ensure_initialized() -> Dict[str, Any]:
    """Perform one-time setup of the XML subsystem.

    Registers the SAML/XML-DSig namespace prefixes used for serialization and
    freezes the hardened parser options. Safe to call any number of times from
    any number of threads; only the first call does work.

    Returns:
        The hardened XMLParser options

    Example:
        >>> options = ensure_initialized()
        >>> ensure_initialized() is options  # no-op
        True
    """
    global _parser_options

    if _parser_options is not None:
        return _parser_options

    with _init_lock:
        if _parser_options is not None:
            return _parser_options

        for prefix, uri in NAMESPACES.items():
            etree.register_namespace(prefix, uri)

        _parser_options = {
            "resolve_entities": False,
            "no_network": True,
            "load_dtd": False,
            "dtd_validation": False,
            "huge_tree": False,
            "remove_comments": False,
        }
        logger.debug("XML subsystem initialized (entity resolution and network access disabled)")
        return _parser_options


def new_parser(**overrides: Any) -> etree.XMLParser:
    """Create a fresh hardened XMLParser.

    Args:
        **overrides: Extra XMLParser options (security options cannot be relaxed)

    Returns:
        New lxml XMLParser instance
    """
    options = dict(overrides)
    options.update(ensure_initialized())
    return etree.XMLParser(**options)


def parse_xml(xml_bytes: bytes, **overrides: Any) -> etree._Element:
    """Parse bytes into an lxml element tree with the hardened parser.

    Args:
        xml_bytes: Raw XML document
        **overrides: Extra XMLParser options (e.g. ``remove_blank_text=True``)

    Returns:
        Root element of the parsed document

    Raises:
        etree.XMLSyntaxError: If the document is not well-formed
        ValueError: If the document declares a DOCTYPE
    """
    root = etree.fromstring(xml_bytes, parser=new_parser(**overrides))
    if root.getroottree().docinfo.doctype:
        raise ValueError("DOCTYPE declarations are not allowed in SAML messages")
    return root


def reference_uri(signature: etree._Element) -> Optional[str]:
    """Return the URI of the first ds:Reference of a signature, if any."""
    reference = signature.find("ds:SignedInfo/ds:Reference", NAMESPACES)
    if reference is None:
        return None
    return reference.get("URI")


def signs_element(signature: etree._Element, element: etree._Element) -> bool:
    """Check whether a signature's reference targets the given element.

    An empty URI references the whole document and therefore the element
    (which is expected to be the document root). A fragment URI must match the
    element's ``ID`` attribute.

    Args:
        signature: ds:Signature element
        element: Candidate signed element

    Returns:
        True if the signature signs ``element``
    """
    uri = reference_uri(signature)
    if uri is None:
        return False
    if uri == "":
        return True
    element_id = element.get("ID")
    return uri.startswith("#") and element_id is not None and uri[1:] == element_id


def _algorithm(signature: etree._Element, path: str) -> Optional[str]:
    found = signature.find(path, NAMESPACES)
    return found.get("Algorithm") if found is not None else None


def bind_signature(signature: etree._Element) -> SignatureNode:
    """Bind a ds:Signature element into a SignatureNode."""
    value = signature.findtext("ds:SignatureValue", namespaces=NAMESPACES)
    return SignatureNode(
        element=signature,
        reference_uri=reference_uri(signature),
        signature_method=_algorithm(signature, "ds:SignedInfo/ds:SignatureMethod"),
        digest_method=_algorithm(signature, "ds:SignedInfo/ds:Reference/ds:DigestMethod"),
        signature_value="".join(value.split()) if value else None,
    )


def _text(element: etree._Element, path: str) -> Optional[str]:
    text = element.findtext(path, namespaces=NAMESPACES)
    return text.strip() if text else None


def _child_elements(element: etree._Element) -> List[etree._Element]:
    # Comments and processing instructions have non-string tags
    return [child for child in element if isinstance(child.tag, str)]


def bind_assertion(element: etree._Element) -> Assertion:
    """Bind a saml:Assertion element.

    The assertion's signature is its first direct ds:Signature child.
    """
    signature = next(
        (child for child in _child_elements(element) if child.tag == SIGNATURE_TAG),
        None,
    )
    return Assertion(
        assertion_id=element.get("ID"),
        issuer=_text(element, "saml:Issuer"),
        subject_name_id=_text(element, "saml:Subject/saml:NameID"),
        issue_instant=element.get("IssueInstant"),
        signature=bind_signature(signature) if signature is not None else None,
        element=element,
    )


def bind_encrypted_assertion(element: etree._Element) -> EncryptedAssertion:
    """Bind a saml:EncryptedAssertion placeholder without decrypting it."""
    method = element.find("xenc:EncryptedData/xenc:EncryptionMethod", NAMESPACES)
    return EncryptedAssertion(
        encryption_algorithm=method.get("Algorithm") if method is not None else None,
        element=element,
    )


def bind_response(root: etree._Element) -> ParsedResponse:
    """Bind a parsed samlp:Response tree into the typed model.

    Root-level signatures that do not sign the response itself are counted as
    misplaced and are not treated as the response signature.

    Args:
        root: Root element of the parsed document

    Returns:
        ParsedResponse bound from the tree

    Raises:
        ParseError: If the root element is not samlp:Response
    """
    if root.tag != RESPONSE_TAG:
        raise ParseError(
            RESPONSE_FAILED,
            f"Expected samlp:Response root element, found {root.tag}",
        )

    signature: Optional[SignatureNode] = None
    misplaced = 0
    assertions: List[Assertion] = []
    encrypted: List[EncryptedAssertion] = []

    for child in _child_elements(root):
        if child.tag == SIGNATURE_TAG:
            if signature is None and signs_element(child, root):
                signature = bind_signature(child)
            else:
                misplaced += 1
        elif child.tag == ASSERTION_TAG:
            assertions.append(bind_assertion(child))
        elif child.tag == ENCRYPTED_ASSERTION_TAG:
            encrypted.append(bind_encrypted_assertion(child))

    status_code = root.find("samlp:Status/samlp:StatusCode", NAMESPACES)
    issuer = next(
        (child for child in _child_elements(root) if child.tag == ISSUER_TAG), None
    )

    if misplaced:
        logger.warning(
            f"Response {root.get('ID')} has {misplaced} root-level Signature element(s) "
            f"that do not sign the response. Enable repair if the assertion signature "
            f"was hoisted out of its Assertion."
        )

    return ParsedResponse(
        response_id=root.get("ID"),
        issuer=issuer.text.strip() if issuer is not None and issuer.text else None,
        issue_instant=root.get("IssueInstant"),
        destination=root.get("Destination"),
        in_response_to=root.get("InResponseTo"),
        status_code=status_code.get("Value") if status_code is not None else None,
        signature=signature,
        assertions=tuple(assertions),
        encrypted_assertions=tuple(encrypted),
        misplaced_signatures=misplaced,
        element=root,
    )


def parse_response(xml_bytes: bytes) -> ParsedResponse:
    """Parse decoded response bytes into a ParsedResponse.

    Args:
        xml_bytes: Decoded (possibly repaired) response XML

    Returns:
        ParsedResponse with assertions, encrypted placeholders and signatures

    Raises:
        ParseError: If the bytes are not a well-formed, bindable SAML2 Response

    Example:
        >>> response = parse_response(decoded_bytes)
        >>> len(response.assertions)
        1
    """
    ensure_initialized()

    try:
        root = parse_xml(xml_bytes)
        response = bind_response(root)
    except ParseError:
        raise
    except Exception as e:
        logger.debug(f"Response parsing failed: {e}")
        raise ParseError(RESPONSE_FAILED, str(e)) from e

    logger.debug(
        f"Parsed response {response.response_id}: "
        f"{len(response.assertions)} assertion(s), "
        f"{len(response.encrypted_assertions)} encrypted assertion(s), "
        f"response signature={'present' if response.signature else 'absent'}"
    )
    return response
