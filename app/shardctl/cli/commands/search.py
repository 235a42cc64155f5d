"""Search command implementation.

Looks up formulae and casks in the Homebrew catalog.
"""

from typing import Annotated

import typer

from shardctl.actuators.base import Actuator
from shardctl.cli.display import create_search_table
from shardctl.cli.types import get_services, kind_hint, require_manager
from shardctl.core.errors import ActuatorError, NotFoundError, ShardError
from shardctl.core.observability import ObservabilityContext
from shardctl.core.validation import validate_search_query
from shardctl.models.manifest import PackageType
from shardctl.models.shard import PackageInfo
from shardctl.utils.formatting import console, print_error, print_info


def _details(
    actuator: Actuator, name: str, kind: PackageType, context: ObservabilityContext
) -> PackageInfo:
    try:
        return actuator.info(name, kind)
    except (NotFoundError, ActuatorError) as e:
        context.debug("No details for %s: %s", name, e)
        return PackageInfo(name=name, kind=kind)


def search(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Search term, or /regex/.")],
    formula: Annotated[bool, typer.Option("--formula", help="Only search formulae.")] = False,
    cask: Annotated[bool, typer.Option("--cask", help="Only search casks.")] = False,
    deep: Annotated[
        bool,
        typer.Option("--deep", "-d", help="Show version and description of each match."),
    ] = False,
) -> None:
    """Search Homebrew for formulae and casks.

    The query is matched case-insensitively. --deep runs one brew info
    call per match, which is slow for broad queries.

    Examples:
        shardctl search ripgrep
        shardctl search firefox --cask --deep
    """
    hint = kind_hint(formula, cask)
    services = get_services(ctx)
    require_manager(services)
    kinds = (hint,) if hint else (PackageType.FORMULA, PackageType.CASK)

    total = 0
    try:
        term = validate_search_query(query).lower()
        for kind in kinds:
            names = services.actuator.search(term, kind)
            if not names:
                continue
            total += len(names)
            if deep:
                matches = [_details(services.actuator, n, kind, services.context) for n in names]
            else:
                matches = [PackageInfo(name=n, kind=kind) for n in names]
            console.print(create_search_table(kind, matches, deep))
    except ShardError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if total == 0:
        print_info(f"No formulae or casks match '{term}'.")
