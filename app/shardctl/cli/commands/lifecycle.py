"""Shard lifecycle commands: grow, shatter, disable and enable."""

from typing import Annotated

import typer

from shardctl.cli.types import get_services
from shardctl.core.errors import ProtectedError, ShardError
from shardctl.utils.formatting import print_error, print_info, print_success


def grow(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the new shard.")],
    description: Annotated[
        str,
        typer.Option("--description", "-d", help="Short description of the shard."),
    ] = "",
) -> None:
    """Create a new empty shard.

    Examples:
        shardctl grow work -d "Work machine tools"
    """
    services = get_services(ctx)
    try:
        path = services.manager.create(name, description)
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Created shard '{name}' at {path}")


def shatter(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the shard to delete.")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Allow deleting a protected shard."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete a shard permanently after backing it up.

    Examples:
        shardctl shatter work
        shardctl shatter user --force
    """
    services = get_services(ctx)
    if not yes and not typer.confirm(f"Delete shard '{name}'?", default=False):
        print_info("Cancelled.")
        return

    try:
        backup = services.manager.delete(name, force=force)
    except ProtectedError as e:
        print_error(str(e))
        if not force:
            print_info("Use --force to delete a protected shard you are allowed to modify.")
        raise typer.Exit(code=1) from e
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Deleted shard '{name}' (backup: {backup})")


def disable(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the shard to disable.")],
) -> None:
    """Disable a shard so apply ignores it.

    The shard is backed up first and can be re-enabled at any time.
    """
    services = get_services(ctx)
    try:
        services.manager.disable(name)
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Disabled shard '{name}'")


def enable(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the shard to enable.")],
) -> None:
    """Re-enable a disabled shard."""
    services = get_services(ctx)
    try:
        services.manager.enable(name)
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Enabled shard '{name}'")
