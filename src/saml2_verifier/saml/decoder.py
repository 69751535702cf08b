"""Base64 envelope decoding for SAML2 responses.

The HTTP-POST binding transports the Response as a base64 form field. This
module turns that field back into XML bytes, optionally running structural
repair on the result.
"""

import base64
import binascii
import logging

from ..utils.exceptions import DecodeError
from .constants import DECODE_FAILED
from .repair import repair_signature_nesting

logger = logging.getLogger(__name__)


def decode_base64(encoded: str) -> bytes:
    """Strictly decode a base64 string.

    Whitespace and line breaks (as produced by MIME-style wrapping) are removed
    before decoding. Characters outside the base64 alphabet and bad padding are
    rejected.

    Args:
        encoded: Base64 text

    Returns:
        Decoded bytes

    Raises:
        DecodeError: If the input is empty or not valid base64
    """
    if encoded is None:
        raise DecodeError(DECODE_FAILED, "Encoded response is empty")

    compact = "".join(encoded.split())
    if not compact:
        raise DecodeError(DECODE_FAILED, "Encoded response is empty")

    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(DECODE_FAILED, f"Invalid base64 input: {e}") from e


def decode_envelope(encoded: str, repair: bool = False) -> bytes:
    """Decode the encoded response envelope into XML bytes.

    Without repair a bad envelope raises DecodeError. With repair the decoder
    never raises: undecodable input is passed through as its UTF-8 bytes (the
    parser reports it afterwards) and the decoded bytes go through
    ``repair_signature_nesting``.

    Args:
        encoded: Base64-encoded SAML2 Response
        repair: Whether to run structural repair on the decoded bytes

    Returns:
        Decoded (and possibly repaired) XML bytes

    Raises:
        DecodeError: If ``repair`` is False and the input is not valid base64

    Example:
        >>> xml_bytes = decode_envelope(form["SAMLResponse"])
        >>> xml_bytes.startswith(b"<samlp:Response")
        True
    """
    if not repair:
        decoded = decode_base64(encoded)
        logger.debug(f"Decoded response envelope ({len(decoded)} bytes)")
        return decoded

    try:
        decoded = decode_base64(encoded)
    except DecodeError as e:
        logger.warning(
            f"Base64 decoding failed in repair mode, passing raw input through: {e.detail}"
        )
        return (encoded or "").encode("utf-8")

    logger.debug(f"Decoded response envelope ({len(decoded)} bytes), running repair")
    return repair_signature_nesting(decoded)
