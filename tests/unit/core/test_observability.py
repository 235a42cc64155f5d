"""Unit tests for the logging context."""

import logging
from io import StringIO
from unittest.mock import patch

from rich.console import Console
from shardctl.core.observability import ObservabilityContext


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


class TestCreate:
    """Tests for ObservabilityContext.create."""

    def test_levels(self) -> None:
        """verbose selects DEBUG, quiet WARNING, otherwise INFO."""
        assert ObservabilityContext.create(verbose=True).logger.level == logging.DEBUG
        assert ObservabilityContext.create(quiet=True).logger.level == logging.WARNING
        assert ObservabilityContext.create().logger.level == logging.INFO

    def test_writes_to_console(self) -> None:
        """Messages reach the given console."""
        console, buffer = _console()
        context = ObservabilityContext.create(console=console)

        context.step("Installing %d formulae", 2)

        assert "Installing 2 formulae" in buffer.getvalue()

    def test_quiet_hides_info(self) -> None:
        """Quiet mode drops info but keeps warnings."""
        console, buffer = _console()
        context = ObservabilityContext.create(quiet=True, console=console)

        context.success("done")
        context.warning("careful")

        output = buffer.getvalue()
        assert "done" not in output
        assert "careful" in output

    def test_repeated_create_does_not_duplicate(self) -> None:
        """Creating a second context replaces the first handler."""
        console, buffer = _console()
        ObservabilityContext.create(console=Console(file=StringIO()))
        context = ObservabilityContext.create(console=console)

        context.error("once")

        assert buffer.getvalue().count("once") == 1
        handlers = [h for h in context.logger.handlers if type(h).__name__ == "_ContextHandler"]
        assert len(handlers) == 1


class TestNull:
    """Tests for ObservabilityContext.null."""

    def test_null_logger(self) -> None:
        """The null context logs to a logger with a NullHandler."""
        context = ObservabilityContext.null()

        assert context.logger.name == "shardctl.null"
        assert any(isinstance(h, logging.NullHandler) for h in context.logger.handlers)

    def test_null_forwards_arguments(self) -> None:
        """Messages and arguments are passed to the logger unchanged."""
        context = ObservabilityContext.null()
        with patch.object(context.logger, "warning") as mock_warning:
            context.warning("skipped %s", "wget")
        mock_warning.assert_called_once_with("skipped %s", "wget")
