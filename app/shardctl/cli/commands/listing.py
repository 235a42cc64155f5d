"""List command implementation."""

import typer

from shardctl.cli.display import create_shards_table
from shardctl.cli.types import get_services
from shardctl.utils.formatting import console, print_info

app = typer.Typer(
    help="List active and disabled shards.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def list_shards(ctx: typer.Context) -> None:
    """List active and disabled shards."""
    if ctx.invoked_subcommand is not None:
        return

    services = get_services(ctx)
    records = services.manager.all_records()
    if not records:
        print_info("No shards found. Run 'shardctl init' to create the default shards.")
        return

    console.print(create_shards_table(records))
