"""Entry point for running saml2_verifier as a module.

This allows the package to be executed as:
    python -m saml2_verifier
"""

from saml2_verifier.cli.main import cli

if __name__ == "__main__":
    cli()
