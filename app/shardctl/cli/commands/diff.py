"""Diff command implementation.

Shows what apply would do without changing anything.
"""

import json
from typing import Annotated

import typer

from shardctl.cli.display import create_plan_table, print_plan_summary
from shardctl.cli.types import get_services, require_manager
from shardctl.core.errors import ShardError
from shardctl.core.reconcile import ALL_TARGET, Reconciler
from shardctl.utils.formatting import console, print_error, print_success


def diff_shards(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Shard name, manifest path, or 'all'."),
    ] = ALL_TARGET,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON for scripting.",
        ),
    ] = False,
) -> None:
    """Compare shards with the installed packages.

    Builds exactly the plan apply would execute and prints it.

    Examples:
        shardctl diff                 # Plan for every active shard
        shardctl diff work            # Plan for one shard
        shardctl diff --json          # JSON output for scripting
    """
    services = get_services(ctx)
    require_manager(services)
    reconciler = Reconciler(
        services.actuator, services.manager, services.context, services.settings
    )

    try:
        plan = reconciler.diff(target)
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if json_output:
        console.print_json(json.dumps(plan.to_dict()))
        return

    if plan.is_empty:
        print_success("System is in sync with shards.")
        return

    console.print(create_plan_table(plan))
    print_plan_summary(plan)
