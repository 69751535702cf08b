"""Certificate management module for building verification credentials.

This module turns raw certificate bytes (PEM or DER) into an immutable
Credential exposing the public key used to verify XML signatures. It also
offers a small file loader for the command line harness.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from ..models.saml import CertificateInfo, Credential
from ..utils.exceptions import CredentialError
from .constants import CERTIFICATE_REQUIRED, CREDENTIAL_FAILED

logger = logging.getLogger(__name__)

PEM_MARKER = b"-----BEGIN"


def get_certificate_info(cert: x509.Certificate) -> CertificateInfo:
    """Extract certificate information for display and logging.

    Args:
        cert: X.509 certificate

    Returns:
        CertificateInfo dataclass with certificate details

    Example:
        >>> credential = load_credential(Path("idp.crt").read_bytes())
        >>> print(credential.info.subject)
        CN=idp.example.com
    """
    public_key = cert.public_key()
    key_size = public_key.key_size if hasattr(public_key, "key_size") else None

    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        serial_number=cert.serial_number,
        key_size=key_size,
    )


def check_expiration_warning(
    cert: x509.Certificate, warning_days: int = 30
) -> bool:
    """Check if certificate is expired or expiring soon and log a warning.

    Validity dates are reported only; they never reject a credential.

    Args:
        cert: X.509 certificate to check
        warning_days: Number of days before expiration to warn (default: 30)

    Returns:
        True if certificate expires within warning_days, False otherwise
    """
    now = datetime.now(timezone.utc)
    warning_date = now + timedelta(days=warning_days)

    if cert.not_valid_after_utc < warning_date:
        days_remaining = (cert.not_valid_after_utc - now).days
        logger.warning(
            f"Certificate expiring soon or expired: {days_remaining} days remaining "
            f"(expires: {cert.not_valid_after_utc.strftime('%Y-%m-%d')})"
        )
        return True

    return False


def decode_certificate(cert_bytes: bytes) -> x509.Certificate:
    """Decode PEM or DER bytes into an X.509 certificate.

    PEM is detected by its ``-----BEGIN`` armour; anything else is read as DER.

    Args:
        cert_bytes: Raw certificate bytes

    Returns:
        Decoded X.509 certificate

    Raises:
        ValueError: If the bytes are not a well-formed certificate
    """
    if PEM_MARKER in cert_bytes[:256]:
        return x509.load_pem_x509_certificate(cert_bytes)
    return x509.load_der_x509_certificate(cert_bytes)


def load_credential(cert_bytes: Optional[bytes]) -> Credential:
    """Build a verification credential from raw certificate bytes.

    Args:
        cert_bytes: PEM or DER encoded X.509 certificate

    Returns:
        Immutable Credential with certificate, public key and info

    Raises:
        CredentialError: If the bytes are empty or not a valid certificate

    Example:
        >>> credential = load_credential(Path("certs/idp.pem").read_bytes())
        >>> credential.info.key_size
        2048
    """
    if not cert_bytes:
        raise CredentialError(CERTIFICATE_REQUIRED)

    try:
        cert = decode_certificate(bytes(cert_bytes))
        public_key = cert.public_key()
    except Exception as e:
        logger.debug(f"Certificate decoding failed: {e}")
        raise CredentialError(CREDENTIAL_FAILED, str(e)) from e

    info = get_certificate_info(cert)
    logger.info(f"Loaded verification certificate: {info.subject}")
    logger.debug(
        f"Certificate serial={info.serial_number}, key_size={info.key_size}, "
        f"expires={info.not_after.strftime('%Y-%m-%d')}"
    )
    check_expiration_warning(cert)

    return Credential(certificate=cert, public_key=public_key, info=info)


def load_certificate_file(cert_path: Union[Path, str]) -> bytes:
    """Read certificate bytes from a file.

    Args:
        cert_path: Path to a PEM (.pem, .crt, .cer) or DER (.der) file

    Returns:
        Raw file contents

    Raises:
        CredentialError: If the file does not exist or cannot be read
    """
    cert_path = Path(cert_path)
    if not cert_path.exists():
        raise CredentialError(
            CERTIFICATE_REQUIRED,
            f"Certificate file not found: {cert_path}. "
            f"Ensure the file exists and path is correct.",
        )

    try:
        return cert_path.read_bytes()
    except OSError as e:
        raise CredentialError(
            CERTIFICATE_REQUIRED, f"Failed to read certificate file {cert_path}: {e}"
        ) from e


def convert_to_pem(cert: x509.Certificate) -> str:
    """Convert certificate to a PEM string.

    Args:
        cert: X.509 certificate to convert

    Returns:
        Certificate in PEM format
    """
    return cert.public_bytes(Encoding.PEM).decode("ascii")
