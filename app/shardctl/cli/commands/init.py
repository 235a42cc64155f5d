"""Init command implementation.

Creates the default protected shards and, on first run, a settings file
holding the defaults.
"""

from typing import Annotated

import typer

from shardctl.cli.types import get_services
from shardctl.core.config import ConfigError, Settings, save_settings
from shardctl.core.errors import ShardError
from shardctl.core.paths import get_settings_path
from shardctl.utils.formatting import print_error, print_info, print_success

app = typer.Typer(
    help="Create the default system and user shards.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def init_shards(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Back up and recreate shards that already exist.",
        ),
    ] = False,
) -> None:
    """Create the default system and user shards.

    Both shards are protected. The user shard can be modified by the
    current user; the system shard cannot.

    Examples:
        shardctl init                 # Create missing default shards
        shardctl init --force         # Recreate them (old ones are backed up)
    """
    if ctx.invoked_subcommand is not None:
        return

    services = get_services(ctx)
    try:
        created = services.manager.init_defaults(force=force)
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    settings_path = get_settings_path()
    if not settings_path.exists():
        try:
            save_settings(Settings(), settings_path)
        except ConfigError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success(f"Created settings: {settings_path}")

    if not created:
        print_info("Default shards already exist. Use --force to recreate them.")
        return

    for name in created:
        print_success(f"Created shard: {services.manager.active_path(name)}")
    print_info("\nNext steps:")
    print_info("  1. Add packages: shardctl add <package>")
    print_info("  2. Preview changes: shardctl diff")
    print_info("  3. Apply: shardctl apply")
