"""Inventory snapshot of installed packages."""

from dataclasses import dataclass, field

from shardctl.models.manifest import PackageType


@dataclass(frozen=True, slots=True)
class Inventory:
    """Immutable snapshot of what the package manager reports as installed.

    Taken once at the start of a reconciliation pass and never refreshed
    during it.

    Attributes:
        installed_formulae: Every installed formula, dependencies included.
        installed_casks: Every installed cask.
        installed_taps: Every tapped repository.
        dependency_formulae: Formulae installed only as dependencies.
    """

    installed_formulae: frozenset[str] = field(default_factory=frozenset)
    installed_casks: frozenset[str] = field(default_factory=frozenset)
    installed_taps: frozenset[str] = field(default_factory=frozenset)
    dependency_formulae: frozenset[str] = field(default_factory=frozenset)

    def installed(self, kind: PackageType) -> frozenset[str]:
        """Installed names for one package kind."""
        if kind == PackageType.FORMULA:
            return self.installed_formulae
        return self.installed_casks

    def is_installed(self, name: str, kind: PackageType) -> bool:
        """Check if a package of the given kind is installed."""
        return name in self.installed(kind)

    @property
    def main_formulae(self) -> frozenset[str]:
        """Installed formulae that were not pulled in as dependencies."""
        return self.installed_formulae - self.dependency_formulae

    @property
    def main_casks(self) -> frozenset[str]:
        """Installed casks; casks are never dependencies."""
        return self.installed_casks

    def main_packages(self, kind: PackageType) -> frozenset[str]:
        """Main packages for one package kind."""
        if kind == PackageType.FORMULA:
            return self.main_formulae
        return self.main_casks
