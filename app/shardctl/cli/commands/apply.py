"""Apply command implementation.

Reconciles installed packages with one shard or with every active shard.
"""

from typing import Annotated

import typer

from shardctl.cli.display import (
    create_plan_table,
    create_results_table,
    print_plan_summary,
    print_results_summary,
)
from shardctl.cli.types import get_services, require_manager
from shardctl.core.errors import ShardError
from shardctl.core.inventory import snapshot
from shardctl.core.reconcile import ALL_TARGET, Reconciler
from shardctl.models.plan import ReconciliationPlan
from shardctl.utils.formatting import console, print_error, print_info, print_success


def _removal_count(plan: ReconciliationPlan) -> int:
    return (
        len(plan.formula_ops.to_uninstall)
        + len(plan.cask_ops.to_uninstall)
        + len(plan.implied_formulae)
        + len(plan.implied_casks)
    )


def _confirm_actions(action_count: int, removal_count: int) -> bool:
    """Prompt user to confirm execution.

    Args:
        action_count: Number of operations to be executed.
        removal_count: Number of those that uninstall a package.

    Returns:
        True if user confirms, False otherwise.
    """
    prompt = f"\nProceed with {action_count} action(s)"
    if removal_count:
        prompt += f", including {removal_count} uninstall(s)"
    return typer.confirm(f"{prompt}?", default=False)


def apply_shards(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Shard name, manifest path, or 'all'."),
    ] = ALL_TARGET,
    skip_cleanup: Annotated[
        bool,
        typer.Option(
            "--skip-cleanup",
            help="Do not run brew cleanup afterwards.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt and proceed.",
        ),
    ] = False,
) -> None:
    """Apply shards to the system.

    Adds missing taps, installs and upgrades declared packages, and removes
    packages declared absent.

    Applying 'all' merges every active shard and also uninstalls packages
    that no shard declares any more. Critical packages such as bash, git
    and openssl are never removed this way. Applying a single shard never
    removes undeclared packages.

    Examples:
        shardctl apply                # Apply every active shard
        shardctl apply work           # Apply one shard, additive only
        shardctl apply all --yes      # Apply without confirmation
    """
    services = get_services(ctx)
    require_manager(services)
    reconciler = Reconciler(
        services.actuator, services.manager, services.context, services.settings
    )

    try:
        manifest, additive_only = reconciler.load_target(target)
        inventory = snapshot(services.actuator)
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    plan = reconciler.plan(manifest, inventory, additive_only, target=target)

    if plan.is_empty:
        print_success("System is already in sync. Nothing to do.")
    else:
        console.print(create_plan_table(plan))
        print_plan_summary(plan)

        if not yes and not _confirm_actions(plan.total_changes, _removal_count(plan)):
            print_info("Aborted.")
            raise typer.Exit(code=0)

        console.print("\n[bold]Executing actions...[/bold]\n")

    report = reconciler.execute(plan, inventory, skip_cleanup=skip_cleanup)

    if report.results:
        console.print(create_results_table(list(report.results)))
        print_results_summary(list(report.results))

    if not report.success:
        raise typer.Exit(code=1)
