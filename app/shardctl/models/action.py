"""Action models for package operations.

This module defines data structures for representing package management
actions (install, upgrade, uninstall, tap, cleanup) and their execution
results.
"""

from dataclasses import dataclass, field
from enum import Enum

from shardctl.models.manifest import PackageType


class ActionType(Enum):
    """Type of package management action.

    Attributes:
        INSTALL: Install a package that is not currently installed.
        UPGRADE: Upgrade an installed package to the latest version.
        UNINSTALL: Remove an installed package.
        TAP: Add a third-party repository.
        CLEANUP: Remove stale downloads and old versions.
    """

    INSTALL = "install"
    UPGRADE = "upgrade"
    UNINSTALL = "uninstall"
    TAP = "tap"
    CLEANUP = "cleanup"


@dataclass(frozen=True, slots=True)
class Action:
    """Represents a single package management action to be executed.

    Attributes:
        action_type: The type of action.
        package: Package, tap, or "cleanup" target name.
        kind: Package kind, None for tap and cleanup actions.
        options: Install options passed through to the package manager.
        reason: Optional explanation for why this action is being taken.
    """

    action_type: ActionType
    package: str
    kind: PackageType | None = None
    options: tuple[str, ...] = field(default_factory=tuple)
    reason: str | None = None

    def __post_init__(self) -> None:
        """Validate action data after initialization."""
        if not self.package:
            msg = "Package name cannot be empty"
            raise ValueError(msg)

    @property
    def label(self) -> str:
        """Short label combining action type and kind, e.g. 'install cask'."""
        if self.kind is None:
            return self.action_type.value
        return f"{self.action_type.value} {self.kind.value}"


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Result of executing a package management action.

    Attributes:
        action: The action that was executed.
        success: Whether the action completed successfully.
        message: Optional success message or additional information.
        error: Optional error message if the action failed.
    """

    action: Action
    success: bool
    message: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return not self.success


def succeeded(action: Action, message: str = "Operation completed") -> ActionResult:
    """Create a successful result for an action."""
    return ActionResult(action=action, success=True, message=message)


def failed(action: Action, error: str) -> ActionResult:
    """Create a failed result for an action."""
    return ActionResult(action=action, success=False, error=error)
