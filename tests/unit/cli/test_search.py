"""Unit tests for the search command."""

from shardctl.cli.main import app
from shardctl.models.manifest import PackageType
from typer.testing import CliRunner

runner = CliRunner()


class TestSearchCommand:
    """Tests for shardctl search."""

    def test_both_kinds(self, brew) -> None:
        """Without a flag formulae and casks are searched."""
        brew.available_formulae = {"ripgrep", "ripgrep-all"}
        brew.available_casks = {"ripgrep-gui"}

        result = runner.invoke(app, ["search", "ripgrep"])

        assert result.exit_code == 0, result.output
        assert "Formulae (2)" in result.output
        assert "Casks (1)" in result.output
        assert "ripgrep-gui" in result.output

    def test_query_lowercased(self, brew) -> None:
        """The query is matched in lower case."""
        brew.available_casks = {"firefox"}

        result = runner.invoke(app, ["search", "FireFox", "--cask"])

        assert result.exit_code == 0
        assert ("search", "firefox", PackageType.CASK) in brew.calls
        assert not any(c[0] == "search" and c[2] == PackageType.FORMULA for c in brew.calls)

    def test_deep(self, brew) -> None:
        """--deep shows version and description."""
        brew.available_formulae = {"wget"}

        result = runner.invoke(app, ["search", "wget", "--formula", "--deep"])

        assert result.exit_code == 0
        assert "1.0" in result.output
        assert "The wget tool" in result.output
        assert ("info", "wget", PackageType.FORMULA) in brew.calls

    def test_no_results(self, brew) -> None:
        """An empty result is reported, not an error."""
        result = runner.invoke(app, ["search", "nothing"])

        assert result.exit_code == 0
        assert "No formulae or casks match 'nothing'" in result.output

    def test_invalid_query(self, brew) -> None:
        """Queries with shell metacharacters fail."""
        result = runner.invoke(app, ["search", "wget;ls"])

        assert result.exit_code == 1
        assert "Invalid search query" in result.output

    def test_search_failure(self, brew) -> None:
        """A failing brew search exits 1."""
        brew.fail_queries = True

        result = runner.invoke(app, ["search", "wget"])

        assert result.exit_code == 1
        assert "search failed" in result.output

    def test_brew_missing(self, brew) -> None:
        """Search needs brew on PATH."""
        brew.installed = False

        result = runner.invoke(app, ["search", "wget"])

        assert result.exit_code == 1
        assert "Homebrew not found" in result.output
        assert brew.calls == []
