"""XML namespaces, qualified names and stable messages used across the pipeline."""

SAMLP_NS = "urn:oasis:names:tc:SAML:2.0:protocol"
SAML_NS = "urn:oasis:names:tc:SAML:2.0:assertion"
DS_NS = "http://www.w3.org/2000/09/xmldsig#"
XENC_NS = "http://www.w3.org/2001/04/xmlenc#"

NAMESPACES = {
    "samlp": SAMLP_NS,
    "saml": SAML_NS,
    "ds": DS_NS,
    "xenc": XENC_NS,
}

# Clark notation, as lxml reports element tags
RESPONSE_TAG = f"{{{SAMLP_NS}}}Response"
ASSERTION_TAG = f"{{{SAML_NS}}}Assertion"
ENCRYPTED_ASSERTION_TAG = f"{{{SAML_NS}}}EncryptedAssertion"
ISSUER_TAG = f"{{{SAML_NS}}}Issuer"
SIGNATURE_TAG = f"{{{DS_NS}}}Signature"

# Stage messages reported in ErrorDescriptor.message
CERTIFICATE_REQUIRED = "certificate required"
CREDENTIAL_FAILED = "credential generation failed"
DECODE_FAILED = "response decoding failed"
RESPONSE_FAILED = "response generation failed"
SIGNATURE_NOT_FOUND = "no signature found"
SIGNATURE_MISSING = "signature missing"
SIGNATURE_VALIDATION_FAILED = "signature validation failed"
