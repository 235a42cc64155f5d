"""Subprocess helpers.

Commands are passed as argument lists and never go through a shell.
"""

import shutil
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured output of a finished command.

    Attributes:
        stdout: Standard output, decoded as text.
        stderr: Standard error, decoded as text.
        returncode: Exit status.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """True when the command exited with status 0."""
        return self.returncode == 0

    def lines(self) -> list[str]:
        """Non-empty, stripped stdout lines."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]

    def error_summary(self, fallback: str) -> str:
        """The last non-empty stderr line, or ``fallback`` if there is none."""
        for line in reversed(self.stderr.splitlines()):
            if line.strip():
                return line.strip()
        return fallback


def run_command(
    args: list[str],
    *,
    timeout: float | None = 60.0,
    cwd: str | None = None,
) -> CommandResult:
    """Run a command to completion and capture its output.

    A non-zero exit status is reported through ``CommandResult.returncode``,
    not raised.

    Args:
        args: Executable followed by its arguments.
        timeout: Seconds before the child is killed, None to wait forever.
        cwd: Working directory, defaults to the current one.

    Raises:
        subprocess.TimeoutExpired: The timeout elapsed; the child was killed.
        FileNotFoundError: The executable does not exist.
    """
    completed = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )


def command_exists(name: str) -> bool:
    """True if ``name`` resolves to an executable on PATH."""
    return shutil.which(name) is not None
