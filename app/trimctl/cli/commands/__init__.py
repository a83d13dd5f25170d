"""CLI commands for trimctl.

This package contains all subcommand implementations.
"""

from trimctl.cli.commands import config, trim

__all__ = ["config", "trim"]
