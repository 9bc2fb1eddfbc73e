"""Entry point for running hie_interop as a module.

This allows the package to be executed as:
    python -m hie_interop
"""

from hie_interop.cli.main import cli

if __name__ == "__main__":
    cli()
