"""SAML2 Response signature verification.

Example:
    >>> from saml2_verifier import verify
    >>> result = verify(cert_bytes, encoded_response)
    >>> result.is_valid
    True
"""

__version__ = "1.0.0"

from saml2_verifier.models.saml import ErrorDescriptor, Saml2Result
from saml2_verifier.saml.validation import Saml2Validator, verify

__all__ = [
    "__version__",
    "ErrorDescriptor",
    "Saml2Result",
    "Saml2Validator",
    "verify",
]
