"""Integration test fixtures and configuration.

This module provides fixtures for end-to-end verification tests:
- SAMLResponse form values as an identity provider would post them
- A configuration file pointing at the trusted certificate
"""

import base64
import json
import textwrap
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def form_value() -> Callable[[bytes], str]:
    """Encode response bytes as a line-wrapped SAMLResponse form value.

    Some identity providers wrap the base64 value at 76 characters; the
    decoder must accept both wrapped and unwrapped values.
    """

    def encode(xml_bytes: bytes) -> str:
        encoded = base64.b64encode(xml_bytes).decode("ascii")
        return "\r\n".join(textwrap.wrap(encoded, 76))

    return encode


@pytest.fixture
def verifier_config(tmp_path: Path, cert_file: Path) -> Callable[..., Path]:
    """Write a configuration file trusting the identity provider certificate."""

    def write(repair: bool = False, pretty_print: bool = True) -> Path:
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps(
                {
                    "logging": {"level": "CRITICAL", "log_file": str(tmp_path / "verifier.log")},
                    "verification": {
                        "certificate_path": str(cert_file),
                        "repair_before_parse": repair,
                        "pretty_print": pretty_print,
                    },
                }
            ),
            encoding="utf-8",
        )
        return config_file

    return write
