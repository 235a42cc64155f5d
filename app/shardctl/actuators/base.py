"""Abstract base class for package manager actuators.

This module defines the Actuator interface that the reconciliation
engine uses to query and mutate installed packages.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from shardctl.models.manifest import PackageType
from shardctl.models.shard import PackageAvailability, PackageInfo


class Actuator(ABC):
    """Abstract base class for package manager actuators.

    Query methods return package names. Mutating methods return nothing on
    success and raise on failure, so callers decide how failures are
    recorded.

    Raises (all methods):
        ActuatorError: If the package manager exits non-zero or cannot run.
        ActuatorTimeoutError: If a command exceeds its timeout.
        ValidationError: If a name, tap, or option is malformed.

    Example:
        >>> actuator = HomebrewActuator()
        >>> if "wget" not in actuator.list_installed_formulae():
        ...     actuator.install_formula("wget")
    """

    @abstractmethod
    def manager_available(self) -> bool:
        """Check if the package manager executable can be found."""

    @abstractmethod
    def list_installed_formulae(self) -> list[str]:
        """List every installed formula, dependencies included."""

    @abstractmethod
    def list_installed_casks(self) -> list[str]:
        """List every installed cask."""

    @abstractmethod
    def list_installed_taps(self) -> list[str]:
        """List every tapped repository."""

    @abstractmethod
    def list_dependency_formulae(self) -> list[str]:
        """List formulae that were installed only as dependencies."""

    @abstractmethod
    def add_tap(self, name: str) -> None:
        """Tap a third-party repository."""

    @abstractmethod
    def install_formula(self, name: str, options: Sequence[str] = ()) -> None:
        """Install a single formula with optional install options."""

    @abstractmethod
    def install_cask(self, name: str, options: Sequence[str] = ()) -> None:
        """Install a single cask with optional install options."""

    @abstractmethod
    def batch_install_formulae(self, names: Sequence[str]) -> None:
        """Install several formulae in one package manager call."""

    @abstractmethod
    def batch_install_casks(self, names: Sequence[str]) -> None:
        """Install several casks in one package manager call."""

    @abstractmethod
    def upgrade_formula(self, name: str, options: Sequence[str] = ()) -> None:
        """Upgrade a single formula."""

    @abstractmethod
    def upgrade_cask(self, name: str, options: Sequence[str] = ()) -> None:
        """Upgrade a single cask."""

    @abstractmethod
    def batch_upgrade_formulae(self, names: Sequence[str]) -> None:
        """Upgrade several formulae in one package manager call."""

    @abstractmethod
    def batch_upgrade_casks(self, names: Sequence[str]) -> None:
        """Upgrade several casks in one package manager call."""

    @abstractmethod
    def uninstall_formula(self, name: str, force: bool = False) -> None:
        """Uninstall a formula."""

    @abstractmethod
    def uninstall_cask(self, name: str, force: bool = False) -> None:
        """Uninstall a cask."""

    @abstractmethod
    def cleanup(self, prune_all: bool = True) -> None:
        """Remove stale downloads and outdated versions."""

    @abstractmethod
    def is_available(self, name: str, kind: PackageType) -> bool:
        """Check whether the package manager knows a package of the given kind.

        Args:
            name: Package name.
            kind: Formula or cask.

        Returns:
            True if the package can be installed as that kind.
        """

    @abstractmethod
    def search(self, query: str, kind: PackageType) -> list[str]:
        """Search the package catalog.

        Args:
            query: Search term; a /regex/ is passed through.
            kind: Formula or cask.

        Returns:
            Matching package names, empty if nothing matches.
        """

    @abstractmethod
    def info(self, name: str, kind: PackageType) -> PackageInfo:
        """Look up version and description of a package.

        Raises:
            NotFoundError: If the package does not exist as that kind.
        """

    def check_availability(self, name: str) -> PackageAvailability:
        """Check whether a name exists as a formula, a cask, or both.

        Args:
            name: Package name.

        Returns:
            PackageAvailability for the name.
        """
        return PackageAvailability(
            name=name,
            as_formula=self.is_available(name, PackageType.FORMULA),
            as_cask=self.is_available(name, PackageType.CASK),
        )
