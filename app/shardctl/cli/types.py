"""Shared types and utilities for CLI commands.

Flag handling and service construction used across the command modules.
"""

from dataclasses import dataclass

import typer

from shardctl.actuators.base import Actuator
from shardctl.actuators.homebrew import HomebrewActuator
from shardctl.core.config import ConfigError, Settings, load_settings
from shardctl.core.observability import ObservabilityContext
from shardctl.core.shards import ShardManager
from shardctl.models.manifest import PackageType
from shardctl.utils.formatting import print_error


@dataclass(frozen=True, slots=True)
class Services:
    """Collaborators a command needs, built once per invocation."""

    settings: Settings
    actuator: Actuator
    manager: ShardManager
    context: ObservabilityContext


def kind_hint(formula: bool, cask: bool) -> PackageType | None:
    """Turn --formula/--cask flags into a kind hint.

    Raises:
        typer.BadParameter: If both flags are set.
    """
    if formula and cask:
        msg = "--formula and --cask are mutually exclusive"
        raise typer.BadParameter(msg)
    if formula:
        return PackageType.FORMULA
    if cask:
        return PackageType.CASK
    return None


def get_context(ctx: typer.Context) -> ObservabilityContext:
    """Observability context created by the root callback."""
    if isinstance(ctx.obj, dict) and isinstance(ctx.obj.get("context"), ObservabilityContext):
        return ctx.obj["context"]
    return ObservabilityContext.null()


def get_services(ctx: typer.Context) -> Services:
    """Load settings and build the actuator and shard manager.

    Raises:
        typer.Exit: If the settings file is invalid.
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    return Services(
        settings=settings,
        actuator=HomebrewActuator.from_settings(settings),
        manager=ShardManager.from_settings(settings),
        context=get_context(ctx),
    )


def require_manager(services: Services) -> None:
    """Stop the command if the package manager is not installed.

    Raises:
        typer.Exit: If the brew executable cannot be found.
    """
    if not services.actuator.manager_available():
        print_error(f"Homebrew not found: '{services.settings.brew_path}' is not on PATH")
        raise typer.Exit(code=1)
