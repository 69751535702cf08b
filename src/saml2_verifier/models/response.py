"""Typed object model of a parsed SAML2 Response.

These dataclasses are produced by the response binder and are read-only after
construction. Each keeps a handle to the lxml element it was bound from so
that signatures can be verified against the exact subtree they sign.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class SignatureNode:
    """A bound ds:Signature element.

    Attributes:
        element: The ds:Signature lxml element
        reference_uri: URI of the first ds:Reference (None if absent)
        signature_method: SignatureMethod/@Algorithm (None if absent)
        digest_method: DigestMethod/@Algorithm of the first reference
        signature_value: Text of ds:SignatureValue with whitespace removed
    """

    element: Any
    reference_uri: Optional[str]
    signature_method: Optional[str]
    digest_method: Optional[str]
    signature_value: Optional[str]


@dataclass(frozen=True)
class Assertion:
    """A saml:Assertion child of the Response.

    Attributes:
        assertion_id: Assertion/@ID
        issuer: Text of saml:Issuer
        subject_name_id: Text of saml:Subject/saml:NameID
        issue_instant: Assertion/@IssueInstant as received
        signature: Signature that is a direct child of the assertion
        element: The saml:Assertion lxml element
    """

    assertion_id: Optional[str]
    issuer: Optional[str]
    subject_name_id: Optional[str]
    issue_instant: Optional[str]
    signature: Optional[SignatureNode]
    element: Any


@dataclass(frozen=True)
class EncryptedAssertion:
    """Opaque placeholder for a saml:EncryptedAssertion.

    Encrypted assertions are never decrypted and never walked for signatures.

    Attributes:
        encryption_algorithm: xenc:EncryptionMethod/@Algorithm of the EncryptedData
        element: The saml:EncryptedAssertion lxml element
    """

    encryption_algorithm: Optional[str]
    element: Any


@dataclass(frozen=True)
class ParsedResponse:
    """Typed view of a samlp:Response.

    Attributes:
        response_id: Response/@ID
        issuer: Text of saml:Issuer directly under the response
        issue_instant: Response/@IssueInstant as received
        destination: Response/@Destination
        in_response_to: Response/@InResponseTo
        status_code: samlp:Status/samlp:StatusCode/@Value
        signature: Root-level signature that signs the response itself
        assertions: Assertions in document order
        encrypted_assertions: Encrypted assertion placeholders in document order
        misplaced_signatures: Root-level signatures that sign something else
        element: The samlp:Response lxml element
    """

    response_id: Optional[str]
    issuer: Optional[str]
    issue_instant: Optional[str]
    destination: Optional[str]
    in_response_to: Optional[str]
    status_code: Optional[str]
    signature: Optional[SignatureNode]
    assertions: Tuple[Assertion, ...] = field(default_factory=tuple)
    encrypted_assertions: Tuple[EncryptedAssertion, ...] = field(default_factory=tuple)
    misplaced_signatures: int = 0
    element: Any = None

    @property
    def is_signed_anywhere(self) -> bool:
        return self.signature is not None or any(
            assertion.signature is not None for assertion in self.assertions
        )
