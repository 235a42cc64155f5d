"""Unit tests for apply and diff commands.

Tests for the CLI reconciliation commands.
"""

import json

from shardctl.cli.main import app
from shardctl.core.shards import ShardManager
from shardctl.models.manifest import PackageState, PackageType
from typer.testing import CliRunner

runner = CliRunner()


def seed(shards: ShardManager, name: str, formulae=(), casks=(), present: bool = True) -> None:
    shards.create(name)
    manifest = shards.load(name)
    state = PackageState.PRESENT if present else PackageState.LATEST
    for pkg in formulae:
        manifest.add_package(pkg, PackageType.FORMULA, state)
    for pkg in casks:
        manifest.add_package(pkg, PackageType.CASK, state)
    shards.save(name, manifest)


class TestApplyCommandHelp:
    """Tests for apply command help."""

    def test_apply_help(self) -> None:
        """Apply command shows help."""
        result = runner.invoke(app, ["apply", "--help"])
        assert result.exit_code == 0
        assert "Apply shards to the system" in result.stdout
        assert "--skip-cleanup" in result.stdout
        assert "--yes" in result.stdout


class TestApplyCommand:
    """Tests for apply command execution."""

    def test_installs_with_yes(self, brew, shards) -> None:
        """--yes executes the plan without prompting."""
        seed(shards, "base", formulae=["git"], casks=["firefox"])

        result = runner.invoke(app, ["apply", "--yes"])

        assert result.exit_code == 0, result.output
        assert "git" in brew.formulae
        assert "firefox" in brew.casks
        assert ("cleanup", True) in brew.mutations()

    def test_in_sync(self, brew, shards) -> None:
        """An empty plan says so and only cleans up."""
        seed(shards, "base", formulae=["git"])
        brew.formulae = {"git"}

        result = runner.invoke(app, ["apply", "--skip-cleanup"])

        assert result.exit_code == 0
        assert "already in sync" in result.output
        assert brew.mutations() == []

    def test_abort_at_prompt(self, brew, shards) -> None:
        """Declining the prompt changes nothing."""
        seed(shards, "base", formulae=["git"])
        brew.formulae = {"wget"}

        result = runner.invoke(app, ["apply"], input="n\n")

        assert result.exit_code == 0
        assert "uninstall" in result.output
        assert "Aborted." in result.output
        assert brew.mutations() == []

    def test_confirm_at_prompt(self, brew, shards) -> None:
        """Confirming the prompt executes the plan."""
        seed(shards, "base", formulae=["git"])

        result = runner.invoke(app, ["apply", "--skip-cleanup"], input="y\n")

        assert result.exit_code == 0
        assert brew.mutations() == [("batch_install_formulae", ("git",))]

    def test_single_shard_is_additive(self, brew, shards) -> None:
        """Applying one shard never removes undeclared packages."""
        seed(shards, "work", formulae=["jq"])
        brew.formulae = {"wget"}

        result = runner.invoke(app, ["apply", "work", "--yes", "--skip-cleanup"])

        assert result.exit_code == 0
        assert brew.mutations() == [("batch_install_formulae", ("jq",))]

    def test_no_shards(self, brew) -> None:
        """Applying all without shards fails."""
        result = runner.invoke(app, ["apply", "--yes"])

        assert result.exit_code == 1
        assert "No active shards found" in result.output

    def test_brew_missing(self, brew, shards) -> None:
        """Apply stops before reading anything when brew is not installed."""
        seed(shards, "base", formulae=["git"])
        brew.installed = False

        result = runner.invoke(app, ["apply", "--yes"])

        assert result.exit_code == 1
        assert "Homebrew not found" in result.output
        assert brew.calls == []

    def test_inventory_failure(self, brew, shards) -> None:
        """A failed inventory read aborts before any change."""
        seed(shards, "base", formulae=["git"])
        brew.fail_queries = True

        result = runner.invoke(app, ["apply", "--yes"])

        assert result.exit_code == 1
        assert brew.mutations() == []

    def test_failed_action_exit_code(self, brew, shards) -> None:
        """Any failed action makes apply exit 1 after finishing."""
        seed(shards, "base", formulae=["broken"], casks=["firefox"])
        brew.fail = {"broken"}

        result = runner.invoke(app, ["apply", "--yes", "--skip-cleanup"])

        assert result.exit_code == 1
        assert "firefox" in brew.casks
        assert "FAIL" in result.output


class TestDiffCommand:
    """Tests for diff command."""

    def test_in_sync(self, brew, shards) -> None:
        """No differences prints the in-sync message."""
        seed(shards, "base", formulae=["git"])
        brew.formulae = {"git"}

        result = runner.invoke(app, ["diff"])

        assert result.exit_code == 0
        assert "in sync" in result.output

    def test_table(self, brew, shards) -> None:
        """Differences are shown as a plan table."""
        seed(shards, "base", casks=["firefox"])

        result = runner.invoke(app, ["diff"])

        assert result.exit_code == 0
        assert "firefox" in result.output
        assert "install" in result.output
        assert brew.mutations() == []

    def test_json(self, brew, shards) -> None:
        """--json prints the plan as JSON."""
        seed(shards, "base", formulae=["git"], present=False)
        brew.formulae = {"git", "wget", "jq"}
        brew.dependencies = {"jq"}

        result = runner.invoke(app, ["diff", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["target"] == "all"
        assert data["formulae"]["upgrade"] == ["git"]
        assert data["implied_uninstall"]["formulae"] == ["wget"]

    def test_missing_shard(self, brew) -> None:
        """Diffing a missing shard fails."""
        result = runner.invoke(app, ["diff", "ghost"])

        assert result.exit_code == 1
        assert "not found" in result.output
