"""Shared Rich display functions for plans, results and shards.

Provides reusable table builders and summary printers used by the
apply, diff, list, search, add and del commands.
"""

from rich.table import Table

from shardctl.models.action import ActionResult
from shardctl.models.manifest import PackageType
from shardctl.models.plan import ReconciliationPlan
from shardctl.models.shard import PackageInfo, ShardRecord
from shardctl.utils.formatting import console, format_kind, print_success


def create_plan_table(plan: ReconciliationPlan) -> Table:
    """Create a Rich table listing every operation in a plan.

    Args:
        plan: Plan to display.

    Returns:
        Rich Table with Action, Kind, Package and Note columns.
    """
    table = Table(
        title=f"Plan for {plan.target}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Action", width=10)
    table.add_column("Kind", width=8)
    table.add_column("Package", no_wrap=True)
    table.add_column("Note")

    for tap in plan.taps_to_add:
        table.add_row("[added]+tap[/added]", "[muted]-[/muted]", tap, "[muted]Not tapped[/muted]")

    for kind in (PackageType.FORMULA, PackageType.CASK):
        ops = plan.ops(kind)
        for name in ops.to_install:
            table.add_row(
                "[added]+install[/added]", format_kind(kind), name, "[muted]Not installed[/muted]"
            )
        for name in ops.to_upgrade:
            table.add_row(
                "[changed]^upgrade[/changed]", format_kind(kind), name, "[muted]Latest[/muted]"
            )
        for name, options in ops.with_options:
            table.add_row(
                "[changed]*options[/changed]",
                format_kind(kind),
                name,
                f"[muted]{' '.join(options)}[/muted]",
            )
        for name in ops.to_uninstall:
            table.add_row(
                "[removed]-uninstall[/removed]",
                format_kind(kind),
                name,
                "[muted]Declared absent[/muted]",
            )
        for name in plan.implied(kind):
            table.add_row(
                "[removed]-uninstall[/removed]",
                format_kind(kind),
                f"[removed]{name}[/removed]",
                "[muted]Not declared in any shard[/muted]",
            )

    return table


def print_plan_summary(plan: ReconciliationPlan) -> None:
    """Print counts of planned operations.

    Args:
        plan: Plan to summarize.
    """
    installs = len(plan.formula_ops.to_install) + len(plan.cask_ops.to_install)
    upgrades = len(plan.formula_ops.to_upgrade) + len(plan.cask_ops.to_upgrade)
    options = len(plan.formula_ops.with_options) + len(plan.cask_ops.with_options)
    removals = (
        len(plan.formula_ops.to_uninstall)
        + len(plan.cask_ops.to_uninstall)
        + len(plan.implied_formulae)
        + len(plan.implied_casks)
    )

    parts: list[str] = []
    if plan.taps_to_add:
        parts.append(f"[added]{len(plan.taps_to_add)} tap(s)[/added]")
    if installs:
        parts.append(f"[added]{installs} to install[/added]")
    if upgrades:
        parts.append(f"[changed]{upgrades} to upgrade[/changed]")
    if options:
        parts.append(f"[changed]{options} with options[/changed]")
    if removals:
        parts.append(f"[removed]{removals} to uninstall[/removed]")

    if parts:
        console.print(f"\nSummary: {', '.join(parts)} ({plan.total_changes} total changes)")
    else:
        console.print("\n[muted]No differences found.[/muted]")

    if plan.additive_only:
        console.print("[muted]Additive mode: undeclared packages are left installed.[/muted]")


def create_results_table(results: list[ActionResult]) -> Table:
    """Create a Rich table displaying action results.

    Successful results show "OK"; failed results show "FAIL" with the
    error message.

    Args:
        results: List of action results to display.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Action", width=16)
    table.add_column("Package", no_wrap=True)
    table.add_column("Message")

    for result in results:
        if result.success:
            status = "[success]OK[/success]"
            message = result.message or ""
        else:
            status = "[error]FAIL[/error]"
            message = result.error or "Unknown error"

        table.add_row(
            status,
            result.action.label,
            result.action.package,
            f"[muted]{message}[/muted]",
        )

    return table


def print_results_summary(results: list[ActionResult]) -> None:
    """Print a summary of action results.

    Args:
        results: List of action results.
    """
    success_count = sum(1 for r in results if r.success)
    fail_count = sum(1 for r in results if r.failed)

    if fail_count == 0:
        print_success(f"All {success_count} action(s) completed successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )


def create_search_table(kind: PackageType, matches: list[PackageInfo], deep: bool) -> Table:
    """Create a Rich table of search matches for one package kind.

    Args:
        kind: Formula or cask.
        matches: Matching packages.
        deep: Add Version and Description columns.

    Returns:
        Rich Table titled with the kind and match count.
    """
    title = "Formulae" if kind == PackageType.FORMULA else "Casks"
    table = Table(
        title=f"{title} ({len(matches)})",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Package", no_wrap=True)
    if deep:
        table.add_column("Version")
        table.add_column("Description")

    for match in matches:
        if deep:
            table.add_row(
                f"[{kind.value}]{match.name}[/]",
                match.version or "[muted]-[/muted]",
                f"[muted]{match.description}[/muted]",
            )
        else:
            table.add_row(f"[{kind.value}]{match.name}[/]")

    return table


def create_shards_table(records: list[ShardRecord]) -> Table:
    """Create a Rich table listing shards.

    Args:
        records: Shard records to display.

    Returns:
        Rich Table with Shard, Status, Packages, Protected and Description columns.
    """
    table = Table(
        title="Shards",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Shard", no_wrap=True)
    table.add_column("Status", width=10)
    table.add_column("Formulae", justify="right")
    table.add_column("Casks", justify="right")
    table.add_column("Protected", justify="center")
    table.add_column("Description")

    for record in records:
        style = "shard_active" if record.is_active else "shard_disabled"
        manifest = record.manifest
        if manifest is None:
            table.add_row(
                f"[{style}]{record.name}[/]",
                f"[{style}]{record.status.value}[/]",
                "-",
                "-",
                "-",
                "[error]unreadable[/error]",
            )
            continue
        table.add_row(
            f"[{style}]{record.name}[/]",
            f"[{style}]{record.status.value}[/]",
            str(len(manifest.formulae)),
            str(len(manifest.casks)),
            "[warning]yes[/warning]" if manifest.metadata.protected else "[muted]no[/muted]",
            f"[muted]{manifest.metadata.description}[/muted]",
        )

    return table
