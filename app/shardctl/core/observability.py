"""Explicit logging context.

The CLI builds one ``ObservabilityContext`` per invocation and passes it
to the engine. Core modules never configure logging themselves.
"""

import logging
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "shardctl"


class _ContextHandler(RichHandler):
    """RichHandler installed by ObservabilityContext.create()."""


@dataclass(frozen=True, slots=True)
class ObservabilityContext:
    """Logger handle plus verbosity flags for one invocation.

    Attributes:
        logger: Logger that progress messages are written to.
        verbose: Debug output enabled.
        quiet: Only warnings and errors are shown.
    """

    logger: logging.Logger
    verbose: bool = False
    quiet: bool = False

    @classmethod
    def create(
        cls,
        verbose: bool = False,
        quiet: bool = False,
        console: Console | None = None,
    ) -> "ObservabilityContext":
        """Attach a Rich handler to the shardctl logger.

        A handler installed by an earlier call is replaced, so calling this
        twice never duplicates output.

        Args:
            verbose: Log at DEBUG level.
            quiet: Log at WARNING level. Ignored when verbose is set.
            console: Console to write to. Defaults to a stderr console.

        Returns:
            Context bound to the shardctl logger.
        """
        if verbose:
            level = logging.DEBUG
        elif quiet:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger = logging.getLogger(ROOT_LOGGER)
        for handler in list(logger.handlers):
            if isinstance(handler, _ContextHandler):
                logger.removeHandler(handler)

        handler = _ContextHandler(
            console=console or Console(stderr=True),
            show_time=verbose,
            show_path=verbose,
            markup=False,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False

        return cls(logger=logger, verbose=verbose, quiet=quiet)

    @classmethod
    def null(cls) -> "ObservabilityContext":
        """Context whose messages go nowhere."""
        logger = logging.getLogger(f"{ROOT_LOGGER}.null")
        if not any(isinstance(h, logging.NullHandler) for h in logger.handlers):
            logger.addHandler(logging.NullHandler())
        logger.propagate = False
        return cls(logger=logger)

    def step(self, message: str, *args: object) -> None:
        """Log the start of a reconciliation stage."""
        self.logger.info(message, *args)

    def success(self, message: str, *args: object) -> None:
        self.logger.info(message, *args)

    def warning(self, message: str, *args: object) -> None:
        self.logger.warning(message, *args)

    def error(self, message: str, *args: object) -> None:
        self.logger.error(message, *args)

    def debug(self, message: str, *args: object) -> None:
        self.logger.debug(message, *args)
