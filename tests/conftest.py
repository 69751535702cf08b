"""
Shared pytest configuration and fixtures.

This module provides fixtures used across the unit and integration suites:
test certificates generated with cryptography, and a factory that builds
SAML2 Responses signed with signxml.
"""

import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from lxml import etree
from signxml import CanonicalizationMethod, DigestAlgorithm, SignatureMethod, XMLSigner, methods

SAMLP_NS = "urn:oasis:names:tc:SAML:2.0:protocol"
SAML_NS = "urn:oasis:names:tc:SAML:2.0:assertion"
DS_NS = "http://www.w3.org/2000/09/xmldsig#"

RESPONSE_ID = "_resp-0001"

RESPONSE_TEMPLATE = (
    '<samlp:Response xmlns:samlp="{samlp}" xmlns:saml="{saml}" '
    'ID="{response_id}" Version="2.0" IssueInstant="2026-01-01T10:00:00Z" '
    'Destination="https://sp.example.com/acs" InResponseTo="_req-0001">'
    "<saml:Issuer>https://idp.example.com</saml:Issuer>"
    "<samlp:Status>"
    '<samlp:StatusCode Value="urn:oasis:names:tc:SAML:2.0:status:Success"/>'
    "</samlp:Status>"
    "</samlp:Response>"
)

ASSERTION_TEMPLATE = (
    '<saml:Assertion xmlns:saml="{saml}" ID="{assertion_id}" Version="2.0" '
    'IssueInstant="2026-01-01T10:00:00Z">'
    "<saml:Issuer>https://idp.example.com</saml:Issuer>"
    "<saml:Subject>"
    "<saml:NameID>{name_id}</saml:NameID>"
    "</saml:Subject>"
    "<saml:AttributeStatement>"
    '<saml:Attribute Name="role">'
    "<saml:AttributeValue>member</saml:AttributeValue>"
    "</saml:Attribute>"
    "</saml:AttributeStatement>"
    "</saml:Assertion>"
)

ENCRYPTED_ASSERTION_TEMPLATE = (
    '<saml:EncryptedAssertion xmlns:saml="{saml}">'
    '<xenc:EncryptedData xmlns:xenc="http://www.w3.org/2001/04/xmlenc#" '
    'Type="http://www.w3.org/2001/04/xmlenc#Element">'
    '<xenc:EncryptionMethod Algorithm="http://www.w3.org/2001/04/xmlenc#aes256-cbc"/>'
    "<xenc:CipherData><xenc:CipherValue>c2VjcmV0</xenc:CipherValue></xenc:CipherData>"
    "</xenc:EncryptedData>"
    "</saml:EncryptedAssertion>"
)


@dataclass(frozen=True)
class SigningMaterial:
    """PEM encoded key pair plus the decoded certificate."""

    key_pem: bytes
    cert_pem: bytes
    cert_der: bytes
    certificate: x509.Certificate


def _generate_signing_material(common_name: str, days_valid: int = 365) -> SigningMaterial:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "TestOrg"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])

    now = datetime.now(timezone.utc)
    cert = x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer
    ).public_key(
        private_key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now - timedelta(days=1)
    ).not_valid_after(
        now + timedelta(days=days_valid)
    ).add_extension(
        x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
        critical=False,
    ).add_extension(
        x509.AuthorityKeyIdentifier.from_issuer_public_key(private_key.public_key()),
        critical=False,
    ).sign(private_key, hashes.SHA256())

    return SigningMaterial(
        key_pem=private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ),
        cert_pem=cert.public_bytes(serialization.Encoding.PEM),
        cert_der=cert.public_bytes(serialization.Encoding.DER),
        certificate=cert,
    )


@pytest.fixture(scope="session")
def idp_material() -> SigningMaterial:
    """Key pair and certificate of the trusted identity provider."""
    return _generate_signing_material("idp.example.com")


@pytest.fixture(scope="session")
def other_material() -> SigningMaterial:
    """Key pair and certificate unrelated to the identity provider."""
    return _generate_signing_material("attacker.example.com")


@pytest.fixture(scope="session")
def expiring_material() -> SigningMaterial:
    """Certificate that expires within the expiration warning window."""
    return _generate_signing_material("expiring.example.com", days_valid=5)


@pytest.fixture
def idp_cert_pem(idp_material: SigningMaterial) -> bytes:
    return idp_material.cert_pem


@pytest.fixture
def idp_cert_der(idp_material: SigningMaterial) -> bytes:
    return idp_material.cert_der


@pytest.fixture
def other_cert_pem(other_material: SigningMaterial) -> bytes:
    return other_material.cert_pem


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handler and level changes made by configure_logging."""
    from saml2_verifier.logging_audit.logger import STAGE_LOGGERS

    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    stage_levels = {name: logging.getLogger(name).level for name in STAGE_LOGGERS.values()}

    yield

    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)
    for name, stage_level in stage_levels.items():
        logging.getLogger(name).setLevel(stage_level)


def _signer(sha1: bool = False) -> XMLSigner:
    return XMLSigner(
        method=methods.enveloped,
        signature_algorithm=SignatureMethod.RSA_SHA1 if sha1 else SignatureMethod.RSA_SHA256,
        digest_algorithm=DigestAlgorithm.SHA1 if sha1 else DigestAlgorithm.SHA256,
        c14n_algorithm=CanonicalizationMethod.EXCLUSIVE_XML_CANONICALIZATION_1_0,
    )


def _direct_signature(element: etree._Element) -> Optional[etree._Element]:
    for child in element:
        if child.tag == f"{{{DS_NS}}}Signature":
            return child
    return None


def build_response(
    material: SigningMaterial,
    sign_assertions: bool = True,
    sign_response: bool = False,
    assertion_count: int = 1,
    encrypted_count: int = 0,
    hoist: Optional[str] = None,
    name_id: str = "user@example.com",
    sha1: bool = False,
) -> bytes:
    """Build a serialized samlp:Response.

    Args:
        material: Signing key and certificate
        sign_assertions: Sign every assertion
        sign_response: Sign the response root
        assertion_count: Number of plain assertions
        encrypted_count: Number of EncryptedAssertion placeholders
        hoist: Move the first assertion's Signature to the root, "before" or
            "after" that assertion
        name_id: NameID of every assertion
        sha1: Sign with rsa-sha1 and sha1 digests

    Returns:
        Response XML bytes (no XML declaration)
    """
    response = etree.fromstring(
        RESPONSE_TEMPLATE.format(samlp=SAMLP_NS, saml=SAML_NS, response_id=RESPONSE_ID)
    )

    for index in range(assertion_count):
        assertion_id = f"_assert-{index:04d}"
        assertion = etree.fromstring(
            ASSERTION_TEMPLATE.format(saml=SAML_NS, assertion_id=assertion_id, name_id=name_id)
        )
        if sign_assertions:
            assertion = _signer(sha1).sign(
                assertion,
                key=material.key_pem,
                cert=material.cert_pem.decode("ascii"),
                reference_uri=assertion_id,
            )
        response.append(assertion)

    for _ in range(encrypted_count):
        response.append(etree.fromstring(ENCRYPTED_ASSERTION_TEMPLATE.format(saml=SAML_NS)))

    if hoist is not None:
        assertion = response.find(f"{{{SAML_NS}}}Assertion")
        signature = _direct_signature(assertion)
        assertion.remove(signature)
        signature.tail = None
        position = response.index(assertion)
        response.insert(position if hoist == "before" else position + 1, signature)

    if sign_response:
        response = _signer(sha1).sign(
            response,
            key=material.key_pem,
            cert=material.cert_pem.decode("ascii"),
            reference_uri=RESPONSE_ID,
        )

    return etree.tostring(response)


def encode(xml_bytes: bytes) -> str:
    """Base64-encode response bytes as the HTTP-POST binding does."""
    return base64.b64encode(xml_bytes).decode("ascii")


@pytest.fixture
def response_factory(idp_material: SigningMaterial) -> Callable[..., bytes]:
    """Factory building responses signed by the identity provider.

    Example:
        >>> xml_bytes = response_factory(sign_response=True, assertion_count=2)
    """

    def factory(**kwargs) -> bytes:
        material = kwargs.pop("material", idp_material)
        return build_response(material, **kwargs)

    return factory


@pytest.fixture
def signed_response(response_factory) -> bytes:
    """Response with one signed assertion."""
    return response_factory()


@pytest.fixture
def encoded_signed_response(signed_response: bytes) -> str:
    return encode(signed_response)


@pytest.fixture
def hoisted_response(response_factory) -> bytes:
    """Response whose assertion signature was moved next to the assertion."""
    return response_factory(hoist="after")


@pytest.fixture
def sha1_response(response_factory, monkeypatch) -> bytes:
    """Response whose assertion is signed with rsa-sha1 over a sha1 digest."""
    # signxml refuses to produce SHA1 signatures unless the check is disabled
    monkeypatch.setattr(XMLSigner, "check_deprecated_methods", lambda self: None)
    return response_factory(sha1=True)


@pytest.fixture
def unsigned_response(response_factory) -> bytes:
    return response_factory(sign_assertions=False)


@pytest.fixture
def cert_file(tmp_path: Path, idp_cert_pem: bytes) -> Path:
    """Identity provider certificate written to a PEM file."""
    path = tmp_path / "idp.pem"
    path.write_bytes(idp_cert_pem)
    return path


@pytest.fixture
def response_file(tmp_path: Path, encoded_signed_response: str) -> Path:
    """Encoded signed response written to a file."""
    path = tmp_path / "response.b64"
    path.write_text(encoded_signed_response, encoding="utf-8")
    return path
