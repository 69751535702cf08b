"""Main CLI entry point for the SAML2 verifier.

This module provides the main Click command group for the saml2-verifier CLI.
"""

from pathlib import Path
from typing import Optional

import click

from saml2_verifier import __version__
from saml2_verifier.cli.verify_commands import decode_command, repair_command, verify_command
from saml2_verifier.config import load_config
from saml2_verifier.logging_audit import configure_logging, configure_stage_logging
from saml2_verifier.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="saml2-verifier")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-sensitive",
    is_flag=True,
    help="Redact certificates, signature values and identities from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_sensitive: bool,
) -> None:
    """SAML2 Verifier - Signature verification for SAML2 Responses.

    Decodes a base64 SAMLResponse, optionally repairs a hoisted assertion
    signature, and verifies every response and assertion signature against a
    trusted certificate.

    Common usage:

        # Verify a response
        saml2-verifier verify response.b64 --cert idp.pem

        # Verify with repair of a mis-nested assertion signature
        saml2-verifier verify response.b64 --cert idp.pem --repair

        # Enable verbose logging for debugging
        saml2-verifier --verbose verify response.b64 --cert idp.pem

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["verbose"] = verbose
    ctx.obj["redact_sensitive"] = redact_sensitive
    ctx.obj["log_file"] = log_file

    # Precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_setting = redact_sensitive or config_obj.logging.redact_sensitive

    configure_logging(
        level=log_level, log_file=log_file_path, redact_sensitive=redact_setting
    )
    configure_stage_logging(config_obj.logging.stage_levels)


cli.add_command(verify_command)
cli.add_command(repair_command)
cli.add_command(decode_command)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        saml2-verifier config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")

        verification = config_obj.verification
        click.echo("\nVerification:")
        click.echo(f"  Certificate:  {verification.certificate_path or 'Not configured'}")
        click.echo(f"  Repair:       {verification.repair_before_parse}")
        click.echo(f"  Pretty print: {verification.pretty_print}")
        click.echo(f"  Allow SHA1:   {verification.allow_sha1}")

        click.echo("\nLogging:")
        click.echo(f"  Level:        {config_obj.logging.level}")
        click.echo(f"  Log file:     {config_obj.logging.log_file}")
        click.echo(f"  Redact:       {config_obj.logging.redact_sensitive}")
        for stage, level in config_obj.logging.stage_levels.items():
            click.echo(f"  Stage {stage}: {level}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"saml2-verifier version {__version__}")


if __name__ == "__main__":
    cli()
