"""SAML2 response CLI commands for verification, repair and inspection.

This module provides CLI commands including:
- verify: Verify response and assertion signatures against a certificate
- repair: Move a hoisted assertion signature back into its Assertion
- decode: Show the decoded response XML
"""

import base64
import json
import logging
from pathlib import Path
from typing import Optional

import click

from saml2_verifier.config.schema import Config
from saml2_verifier.models.saml import Saml2Result
from saml2_verifier.saml import (
    Saml2Validator,
    decode_envelope,
    load_certificate_file,
    pretty_format,
    repair_signature_nesting,
)
from saml2_verifier.utils.exceptions import CredentialError, DecodeError

logger = logging.getLogger(__name__)


def _read_encoded_response(response_file: Path) -> str:
    """Read a base64 SAMLResponse value from a file."""
    try:
        return response_file.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Failed to read response file {response_file}: {e}")


def _get_config(ctx: click.Context) -> Optional[Config]:
    if ctx.obj is None:
        return None
    return ctx.obj.get("config")


@click.command(name="verify")
@click.argument("response_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--cert",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Trusted certificate (PEM or DER). Defaults to verification.certificate_path",
)
@click.option(
    "--repair/--no-repair",
    default=None,
    help="Move a hoisted assertion signature back into its Assertion before parsing",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text)",
)
@click.option(
    "--show-xml",
    is_flag=True,
    help="Print the pretty-printed response XML on success",
)
@click.pass_context
def verify_command(
    ctx: click.Context,
    response_file: Path,
    cert: Optional[Path],
    repair: Optional[bool],
    output_format: str,
    show_xml: bool,
) -> None:
    """Verify the signatures of a base64-encoded SAML2 Response.

    RESPONSE_FILE contains the SAMLResponse form value. Exits with status 0
    when every signature verified and 1 otherwise.

    Examples:

        # Verify a response
        saml2-verifier verify response.b64 --cert idp.pem

        # Verify a response whose assertion signature was hoisted
        saml2-verifier verify response.b64 --cert idp.pem --repair

        # Machine-readable output
        saml2-verifier verify response.b64 --cert idp.pem --format json
    """
    config = _get_config(ctx)

    if cert is None and config is not None:
        cert = config.verification.certificate_path
    if cert is None:
        raise click.UsageError(
            "No certificate given. Use --cert or set verification.certificate_path "
            "(SAML2_VERIFIER_CERT_PATH)."
        )
    if repair is None:
        repair = config.verification.repair_before_parse if config is not None else False
    pretty_print = config.verification.pretty_print if config is not None else True
    allow_sha1 = config.verification.allow_sha1 if config is not None else True

    try:
        cert_bytes = load_certificate_file(cert)
    except CredentialError as e:
        click.echo(click.style("✗", fg="red", bold=True) + f" {e}", err=True)
        raise click.exceptions.Exit(1)

    encoded = _read_encoded_response(response_file)
    logger.info(f"Verifying {response_file} against {cert} (repair={repair})")

    validator = Saml2Validator(
        cert_bytes, repair=repair, pretty_print=pretty_print, allow_sha1=allow_sha1
    )
    result = validator.validate(encoded)

    if output_format == "json":
        click.echo(json.dumps(_result_as_json(result, show_xml), indent=2))
    else:
        _display_result(result, show_xml)

    if not result.is_valid:
        raise click.exceptions.Exit(1)


def _result_as_json(result: Saml2Result, show_xml: bool) -> dict:
    data = result.to_dict()
    if not show_xml:
        data.pop("responseB64Decoded", None)
        data.pop("responseB64PrettyFormat", None)
    data["signatures"] = [
        {
            "location": outcome.ref.label,
            "status": outcome.status.value,
            **({"reason": outcome.reason} if outcome.reason else {}),
        }
        for outcome in result.outcomes
    ]
    return data


def _display_result(result: Saml2Result, show_xml: bool) -> None:
    """Display a verification result in readable format."""
    for outcome in result.outcomes:
        if outcome.is_verified:
            click.echo(
                click.style("✓", fg="green", bold=True)
                + f" Signature valid: {outcome.ref.label}"
            )
        else:
            click.echo(
                click.style("✗", fg="red", bold=True)
                + f" Signature invalid: {outcome.ref.label} ({outcome.reason})"
            )

    if result.is_valid:
        click.echo(click.style("\n✓ Response is valid", fg="green", bold=True))
        if show_xml:
            click.echo(click.style("\n=== Response XML ===", bold=True))
            click.echo(result.response_b64_pretty_format or result.response_b64_decoded)
        return

    error = result.error
    click.echo(click.style("\n✗ Response is invalid", fg="red", bold=True))
    click.echo(f"Error:          {error.message}")
    if error.detail:
        click.echo(f"Detail:         {error.detail}")
    click.echo(f"Correlation ID: {error.correlation_id}")
    if error.remediation:
        click.echo(f"Remediation:    {error.remediation}")


@click.command(name="repair")
@click.argument("response_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the repaired XML to this file instead of stdout",
)
@click.option(
    "--encode",
    is_flag=True,
    help="Emit the repaired response base64-encoded, ready for verify",
)
def repair_command(response_file: Path, output: Optional[Path], encode: bool) -> None:
    """Repair a response whose assertion signature sits outside the Assertion.

    The first root-level Signature that does not sign the response is moved
    into the first Assertion. A response that needs no repair is emitted
    unchanged.

    Examples:

        saml2-verifier repair response.b64 --output repaired.xml

        saml2-verifier repair response.b64 --encode > repaired.b64
    """
    encoded = _read_encoded_response(response_file)

    try:
        xml_bytes = decode_envelope(encoded, repair=False)
    except DecodeError as e:
        click.echo(click.style("✗", fg="red", bold=True) + f" {e}", err=True)
        raise click.exceptions.Exit(1)

    repaired = repair_signature_nesting(xml_bytes)
    changed = repaired != xml_bytes

    if encode:
        text = base64.b64encode(repaired).decode("ascii")
    else:
        text = repaired.decode("utf-8", errors="replace")

    if output:
        output.write_text(text, encoding="utf-8")
        click.echo(
            click.style("✓", fg="green", bold=True)
            + f" {'Repaired' if changed else 'Unchanged'} response saved to: {output}"
        )
    else:
        click.echo(text)

    if not changed:
        logger.info(f"No misplaced Signature found in {response_file}")


@click.command(name="decode")
@click.argument("response_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["xml", "pretty"]),
    default="pretty",
    help="Output format (default: pretty)",
)
def decode_command(response_file: Path, output_format: str) -> None:
    """Decode a base64 SAMLResponse value and print the XML.

    Example:

        saml2-verifier decode response.b64
    """
    encoded = _read_encoded_response(response_file)

    try:
        xml_bytes = decode_envelope(encoded, repair=False)
    except DecodeError as e:
        click.echo(click.style("✗", fg="red", bold=True) + f" {e}", err=True)
        raise click.exceptions.Exit(1)

    formatted = pretty_format(xml_bytes) if output_format == "pretty" else None
    click.echo(formatted if formatted is not None else xml_bytes.decode("utf-8", errors="replace"))
