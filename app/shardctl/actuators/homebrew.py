"""Homebrew actuator implementation.

Drives the ``brew`` CLI. Every package name, tap and option is validated
before a subprocess is spawned.
"""

import json
import logging
import subprocess
from collections.abc import Sequence

from shardctl.actuators.base import Actuator
from shardctl.core.config import Settings
from shardctl.core.errors import ActuatorError, ActuatorTimeoutError, NotFoundError
from shardctl.core.validation import (
    validate_options,
    validate_package_name,
    validate_search_query,
    validate_tap_name,
)
from shardctl.models.manifest import PackageType
from shardctl.models.shard import PackageInfo
from shardctl.utils.shell import CommandResult, command_exists, run_command

logger = logging.getLogger(__name__)

# stderr of brew search when nothing matches
_NO_MATCHES = "No formulae or casks found"


class HomebrewActuator(Actuator):
    """Actuator for Homebrew formulae, casks and taps.

    Attributes:
        brew_path: Executable to run.
        query_timeout: Timeout for read-only commands in seconds.
        command_timeout: Timeout for mutating commands, None for no limit.
    """

    def __init__(
        self,
        brew_path: str = "brew",
        query_timeout: float | None = 60.0,
        command_timeout: float | None = 1800.0,
    ) -> None:
        self.brew_path = brew_path
        self.query_timeout = query_timeout
        self.command_timeout = command_timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "HomebrewActuator":
        """Build an actuator from user settings."""
        return cls(
            brew_path=settings.brew_path,
            query_timeout=settings.query_timeout,
            command_timeout=settings.command_timeout,
        )

    def manager_available(self) -> bool:
        """Check if brew is on PATH."""
        return command_exists(self.brew_path)

    # Queries

    def list_installed_formulae(self) -> list[str]:
        return self._query(["list", "--formula"])

    def list_installed_casks(self) -> list[str]:
        return self._query(["list", "--cask"])

    def list_installed_taps(self) -> list[str]:
        return self._query(["tap"])

    def list_dependency_formulae(self) -> list[str]:
        return self._query(["list", "--installed-as-dependency"])

    def is_available(self, name: str, kind: PackageType) -> bool:
        """Check availability with ``brew info --formula|--cask NAME``.

        A non-zero exit means the package is unknown under that kind.
        """
        validate_package_name(name)
        result = self._run(["info", _kind_flag(kind), name], self.query_timeout, subject=name)
        return result.success

    def search(self, query: str, kind: PackageType) -> list[str]:
        """Search with ``brew search --formula|--cask QUERY``.

        brew exits non-zero when nothing matches; that is an empty result.
        """
        term = validate_search_query(query)
        result = self._run(["search", _kind_flag(kind), term], self.query_timeout, subject=term)
        if not result.success:
            if _NO_MATCHES in result.stderr:
                return []
            raise ActuatorError(term, result.error_summary("brew search failed"))
        return [line for line in result.lines() if not line.startswith("==>")]

    def info(self, name: str, kind: PackageType) -> PackageInfo:
        """Read version and description from ``brew info --json=v2``."""
        validate_package_name(name)
        args = ["info", "--json=v2", _kind_flag(kind), name]
        result = self._run(args, self.query_timeout, subject=name)
        if not result.success:
            raise NotFoundError(name, f"No {kind.value} named '{name}'")
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ActuatorError(name, f"Cannot parse brew info output for {name}: {e}") from e

        key = "formulae" if kind == PackageType.FORMULA else "casks"
        entries = data.get(key) if isinstance(data, dict) else None
        if not entries:
            raise NotFoundError(name, f"No {kind.value} named '{name}'")
        entry = entries[0]
        if kind == PackageType.FORMULA:
            version = (entry.get("versions") or {}).get("stable")
        else:
            version = entry.get("version")
        return PackageInfo(
            name=name,
            kind=kind,
            version=str(version or ""),
            description=entry.get("desc") or "",
        )

    # Mutations

    def add_tap(self, name: str) -> None:
        validate_tap_name(name)
        self._mutate(["tap", name], subject=name)

    def install_formula(self, name: str, options: Sequence[str] = ()) -> None:
        self._single("install", PackageType.FORMULA, name, options)

    def install_cask(self, name: str, options: Sequence[str] = ()) -> None:
        self._single("install", PackageType.CASK, name, options)

    def batch_install_formulae(self, names: Sequence[str]) -> None:
        self._batch("install", PackageType.FORMULA, names)

    def batch_install_casks(self, names: Sequence[str]) -> None:
        self._batch("install", PackageType.CASK, names)

    def upgrade_formula(self, name: str, options: Sequence[str] = ()) -> None:
        self._single("upgrade", PackageType.FORMULA, name, options)

    def upgrade_cask(self, name: str, options: Sequence[str] = ()) -> None:
        self._single("upgrade", PackageType.CASK, name, options)

    def batch_upgrade_formulae(self, names: Sequence[str]) -> None:
        self._batch("upgrade", PackageType.FORMULA, names)

    def batch_upgrade_casks(self, names: Sequence[str]) -> None:
        self._batch("upgrade", PackageType.CASK, names)

    def uninstall_formula(self, name: str, force: bool = False) -> None:
        self._uninstall(PackageType.FORMULA, name, force)

    def uninstall_cask(self, name: str, force: bool = False) -> None:
        self._uninstall(PackageType.CASK, name, force)

    def cleanup(self, prune_all: bool = True) -> None:
        args = ["cleanup"]
        if prune_all:
            args.append("--prune=all")
        self._mutate(args, subject="cleanup")

    # Helpers

    def _single(
        self,
        command: str,
        kind: PackageType,
        name: str,
        options: Sequence[str],
    ) -> None:
        validate_package_name(name)
        args = [command]
        if kind == PackageType.CASK:
            args.append("--cask")
        args.extend(validate_options(options))
        args.append(name)
        self._mutate(args, subject=name)

    def _batch(self, command: str, kind: PackageType, names: Sequence[str]) -> None:
        if not names:
            return
        for name in names:
            validate_package_name(name)
        args = [command]
        if kind == PackageType.CASK:
            args.append("--cask")
        args.extend(names)
        self._mutate(args, subject=", ".join(names))

    def _uninstall(self, kind: PackageType, name: str, force: bool) -> None:
        validate_package_name(name)
        args = ["uninstall", _kind_flag(kind), name]
        if force:
            args.append("--force")
        self._mutate(args, subject=name)

    def _query(self, args: list[str]) -> list[str]:
        result = self._run(args, self.query_timeout, subject=" ".join(args))
        if not result.success:
            raise ActuatorError(" ".join(args), result.error_summary(f"brew {args[0]} failed"))
        return result.lines()

    def _mutate(self, args: list[str], subject: str) -> None:
        logger.info("Executing brew %s", " ".join(args))
        result = self._run(args, self.command_timeout, subject=subject)
        if not result.success:
            fallback = f"brew {args[0]} exited with {result.returncode}"
            raise ActuatorError(subject, result.error_summary(fallback))

    def _run(self, args: list[str], timeout: float | None, subject: str) -> CommandResult:
        full_args = [self.brew_path, *args]
        logger.debug("Running %s (timeout=%s)", " ".join(full_args), timeout)
        try:
            return run_command(full_args, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            msg = f"brew {args[0]} timed out after {timeout}s"
            raise ActuatorTimeoutError(subject, msg) from e
        except OSError as e:
            msg = f"Failed to run {self.brew_path}: {e}"
            raise ActuatorError(subject, msg) from e


def _kind_flag(kind: PackageType) -> str:
    return "--formula" if kind == PackageType.FORMULA else "--cask"
