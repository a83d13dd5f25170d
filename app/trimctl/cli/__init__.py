"""CLI package for trimctl.

This package contains the Typer application and all subcommands.
"""

from trimctl.cli.main import app

__all__ = ["app"]
