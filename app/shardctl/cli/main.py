"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from typing import Annotated

import typer

from shardctl import __version__
from shardctl.cli.commands import apply, diff, init, lifecycle, listing, packages, search
from shardctl.core.observability import ObservabilityContext
from shardctl.utils.formatting import err_console

app = typer.Typer(
    name="shardctl",
    help="Declarative Homebrew package configuration with shards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"shardctl version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """shardctl - Declarative Homebrew package configuration.

    Declare taps, formulae and casks in shards and keep the installed
    packages in line with them.
    """
    if verbose and quiet:
        raise typer.BadParameter("--verbose and --quiet are mutually exclusive")
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["context"] = ObservabilityContext.create(
        verbose=verbose, quiet=quiet, console=err_console
    )


# Reconciliation
app.command(name="apply")(apply.apply_shards)
app.command(name="diff")(diff.diff_shards)

# Shard lifecycle
app.add_typer(init.app, name="init")
app.command(name="grow")(lifecycle.grow)
app.command(name="shatter")(lifecycle.shatter)
app.command(name="disable")(lifecycle.disable)
app.command(name="enable")(lifecycle.enable)
app.add_typer(listing.app, name="list")

# Shard contents
app.command(name="add")(packages.add)
app.command(name="del")(packages.remove)
app.command(name="search")(search.search)


if __name__ == "__main__":
    app()
