"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from pathlib import Path

import pytest
from shardctl.actuators.base import Actuator
from shardctl.core.errors import ActuatorError, NotFoundError
from shardctl.core.observability import ObservabilityContext
from shardctl.core.shards import ShardManager
from shardctl.models.manifest import PackageType
from shardctl.models.shard import PackageInfo


class FakeActuator(Actuator):
    """In-memory actuator that records every call.

    Mutations update the fake installed state, so a second pass sees the
    effect of the first. Names in ``fail`` make any mutation touching them
    raise ActuatorError.
    """

    def __init__(
        self,
        formulae: Iterable[str] = (),
        casks: Iterable[str] = (),
        taps: Iterable[str] = (),
        dependencies: Iterable[str] = (),
        available_formulae: Iterable[str] = (),
        available_casks: Iterable[str] = (),
        fail: Iterable[str] = (),
    ) -> None:
        self.formulae = set(formulae)
        self.casks = set(casks)
        self.taps = set(taps)
        self.dependencies = set(dependencies)
        self.available_formulae = set(available_formulae)
        self.available_casks = set(available_casks)
        self.fail = set(fail)
        self.fail_queries = False
        self.installed = True
        self.calls: list[tuple[object, ...]] = []

    def mutations(self) -> list[tuple[object, ...]]:
        """Recorded calls excluding queries."""
        queries = ("list_", "is_available", "search", "info")
        return [c for c in self.calls if not str(c[0]).startswith(queries)]

    def _check(self, names: Sequence[str]) -> None:
        bad = [n for n in names if n in self.fail]
        if bad:
            raise ActuatorError(bad[0], f"Error: {bad[0]} failed")

    def _query(self, method: str, values: set[str]) -> list[str]:
        self.calls.append((method,))
        if self.fail_queries:
            raise ActuatorError(method, "query failed")
        return sorted(values)

    def manager_available(self) -> bool:
        return self.installed

    def list_installed_formulae(self) -> list[str]:
        return self._query("list_installed_formulae", self.formulae)

    def list_installed_casks(self) -> list[str]:
        return self._query("list_installed_casks", self.casks)

    def list_installed_taps(self) -> list[str]:
        return self._query("list_installed_taps", self.taps)

    def list_dependency_formulae(self) -> list[str]:
        return self._query("list_dependency_formulae", self.dependencies)

    def add_tap(self, name: str) -> None:
        self.calls.append(("add_tap", name))
        self._check([name])
        self.taps.add(name)

    def install_formula(self, name: str, options: Sequence[str] = ()) -> None:
        self.calls.append(("install_formula", name, tuple(options)))
        self._check([name])
        self.formulae.add(name)

    def install_cask(self, name: str, options: Sequence[str] = ()) -> None:
        self.calls.append(("install_cask", name, tuple(options)))
        self._check([name])
        self.casks.add(name)

    def batch_install_formulae(self, names: Sequence[str]) -> None:
        self.calls.append(("batch_install_formulae", tuple(names)))
        self._check(names)
        self.formulae.update(names)

    def batch_install_casks(self, names: Sequence[str]) -> None:
        self.calls.append(("batch_install_casks", tuple(names)))
        self._check(names)
        self.casks.update(names)

    def upgrade_formula(self, name: str, options: Sequence[str] = ()) -> None:
        self.calls.append(("upgrade_formula", name, tuple(options)))
        self._check([name])

    def upgrade_cask(self, name: str, options: Sequence[str] = ()) -> None:
        self.calls.append(("upgrade_cask", name, tuple(options)))
        self._check([name])

    def batch_upgrade_formulae(self, names: Sequence[str]) -> None:
        self.calls.append(("batch_upgrade_formulae", tuple(names)))
        self._check(names)

    def batch_upgrade_casks(self, names: Sequence[str]) -> None:
        self.calls.append(("batch_upgrade_casks", tuple(names)))
        self._check(names)

    def uninstall_formula(self, name: str, force: bool = False) -> None:
        self.calls.append(("uninstall_formula", name, force))
        self._check([name])
        self.formulae.discard(name)

    def uninstall_cask(self, name: str, force: bool = False) -> None:
        self.calls.append(("uninstall_cask", name, force))
        self._check([name])
        self.casks.discard(name)

    def cleanup(self, prune_all: bool = True) -> None:
        self.calls.append(("cleanup", prune_all))
        self._check(["cleanup"])

    def is_available(self, name: str, kind: PackageType) -> bool:
        self.calls.append(("is_available", name, kind))
        if kind == PackageType.FORMULA:
            return name in self.available_formulae
        return name in self.available_casks

    def _catalog(self, kind: PackageType) -> set[str]:
        return self.available_formulae if kind == PackageType.FORMULA else self.available_casks

    def search(self, query: str, kind: PackageType) -> list[str]:
        self.calls.append(("search", query, kind))
        if self.fail_queries:
            raise ActuatorError(query, "search failed")
        return sorted(n for n in self._catalog(kind) if query in n)

    def info(self, name: str, kind: PackageType) -> PackageInfo:
        self.calls.append(("info", name, kind))
        if name not in self._catalog(kind):
            raise NotFoundError(name, f"No {kind.value} named '{name}'")
        return PackageInfo(name=name, kind=kind, version="1.0", description=f"The {name} tool")


FIXED_NOW = datetime(2025, 1, 15, 10, 30, 0, 123456, tzinfo=UTC)


@pytest.fixture
def fake_actuator() -> FakeActuator:
    """Empty fake actuator."""
    return FakeActuator()


@pytest.fixture
def make_actuator() -> type[FakeActuator]:
    """FakeActuator class, for tests that need a pre-populated inventory."""
    return FakeActuator


@pytest.fixture
def context() -> ObservabilityContext:
    """Silent observability context."""
    return ObservabilityContext.null()


@pytest.fixture
def manager(tmp_path: Path) -> ShardManager:
    """ShardManager rooted in a temporary directory, acting as 'alice'."""
    shards = tmp_path / "shards"
    return ShardManager(
        shards_dir=shards,
        disabled_dir=shards / "disabled",
        backups_dir=tmp_path / "backups",
        current_user="alice",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def sample_manifest_toml() -> str:
    """Manifest mixing every accepted encoding."""
    return """\
formulae = ["git", "jq:1.7", "wget"]
casks = ["firefox"]
taps = ["homebrew/cask-fonts"]
brews = ["iterm2", "firefox"]

[[formulas]]
name = "wget"
version = "latest"
options = ["--HEAD"]
state = "present"

[[casks_structured]]
name = "slack"
state = "absent"

[[taps_structured]]
name = "hashicorp/tap"

[metadata]
name = "work"
description = "Work tools"
owner = "alice"
protected = false
allowed_users = ["alice"]
version = "0.1.0"
"""
