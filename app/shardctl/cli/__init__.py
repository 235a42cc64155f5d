"""CLI package for shardctl.

This package contains the Typer application and all subcommands.
"""

from shardctl.cli.main import app

__all__ = ["app"]
