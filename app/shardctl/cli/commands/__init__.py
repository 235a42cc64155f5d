"""CLI commands for shardctl.

This package contains all subcommand implementations.
"""

from shardctl.cli.commands import apply, diff, init, lifecycle, listing, packages, search

__all__ = ["apply", "diff", "init", "lifecycle", "listing", "packages", "search"]
