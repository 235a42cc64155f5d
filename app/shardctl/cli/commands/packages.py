"""Package commands: add and del."""

from typing import Annotated

import typer

from shardctl.cli.display import create_results_table, print_results_summary
from shardctl.cli.types import get_services, kind_hint, require_manager
from shardctl.core.errors import ShardError
from shardctl.core.packages import DEFAULT_SHARD, PackageChange, PackageOperations
from shardctl.utils.formatting import console, format_kind, print_error, print_info, print_warning

PackagesArg = Annotated[list[str], typer.Argument(help="Package names.")]
FormulaOpt = Annotated[bool, typer.Option("--formula", help="Treat packages as formulae.")]
CaskOpt = Annotated[bool, typer.Option("--cask", help="Treat packages as casks.")]
DryRunOpt = Annotated[
    bool,
    typer.Option("--dry-run", "-n", help="Show what would change without writing."),
]
ApplyOpt = Annotated[
    bool,
    typer.Option("--apply", "-a", help="Apply every active shard after saving."),
]


def _report(change: PackageChange, verb: str) -> None:
    prefix = "\\[dry-run] Would " if change.dry_run else ""
    for package in change.changed:
        console.print(
            f"{prefix}{verb} {format_kind(package.kind)} [bold]{package.name}[/bold] "
            f"({package.shard})"
        )
    for name, reason in change.skipped:
        print_warning(f"Skipped {name}: {reason}")
    if change.results:
        console.print(create_results_table(list(change.results)))
    if not change.changed:
        print_info("Nothing changed.")
    if change.report is not None and change.report.results:
        results = list(change.report.results)
        console.print(create_results_table(results))
        print_results_summary(results)


def _check_apply(apply: bool, other: bool, other_flag: str) -> None:
    if apply and other:
        msg = f"--apply cannot be combined with {other_flag}"
        raise typer.BadParameter(msg)


def add(
    ctx: typer.Context,
    packages: PackagesArg,
    formula: FormulaOpt = False,
    cask: CaskOpt = False,
    shard: Annotated[
        str,
        typer.Option("--shard", "-s", help="Shard name or manifest path."),
    ] = DEFAULT_SHARD,
    dry_run: DryRunOpt = False,
    install: Annotated[
        bool,
        typer.Option("--install", "-i", help="Install the packages before saving."),
    ] = False,
    apply: ApplyOpt = False,
) -> None:
    """Add packages to a shard.

    Without --formula or --cask the kind is detected. A name that exists
    as both a formula and a cask is added as a cask.

    Examples:
        shardctl add wget jq
        shardctl add firefox --cask --shard work
        shardctl add neovim --install
        shardctl add ripgrep --apply
    """
    hint = kind_hint(formula, cask)
    _check_apply(apply, install, "--install")
    services = get_services(ctx)
    require_manager(services)
    ops = PackageOperations(
        services.actuator, services.manager, services.context, services.settings
    )
    try:
        change = ops.add_packages(
            packages, hint, shard, dry_run=dry_run, install=install, apply=apply
        )
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    _report(change, "add")
    if not change.success:
        raise typer.Exit(code=1)


def remove(
    ctx: typer.Context,
    packages: PackagesArg,
    formula: FormulaOpt = False,
    cask: CaskOpt = False,
    shard: Annotated[
        str,
        typer.Option("--shard", "-s", help="Shard name, manifest path, or 'all'."),
    ] = DEFAULT_SHARD,
    dry_run: DryRunOpt = False,
    uninstall: Annotated[
        bool,
        typer.Option("--uninstall", "-u", help="Uninstall the packages before saving."),
    ] = False,
    apply: ApplyOpt = False,
) -> None:
    """Remove packages from a shard.

    Formulae are searched before casks unless --formula or --cask is given.
    With --shard all, every active unprotected shard is searched.

    Examples:
        shardctl del wget
        shardctl del firefox --cask --shard all --uninstall
        shardctl del wget --apply
    """
    hint = kind_hint(formula, cask)
    _check_apply(apply, uninstall, "--uninstall")
    services = get_services(ctx)
    if uninstall or apply:
        require_manager(services)
    ops = PackageOperations(
        services.actuator, services.manager, services.context, services.settings
    )
    try:
        change = ops.remove_packages(
            packages, hint, shard, dry_run=dry_run, uninstall=uninstall, apply=apply
        )
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    _report(change, "remove")
    if not change.success:
        raise typer.Exit(code=1)
