"""Reconciliation plan models.

A plan is the complete, pure description of what a reconciliation pass
would do. ``diff`` renders it and ``apply`` executes it, so both always
agree.
"""

from dataclasses import dataclass, field
from typing import Any

from shardctl.models.manifest import PackageType


@dataclass(frozen=True, slots=True)
class PackageOps:
    """Classified operations for one package kind.

    Every bucket keeps the order of the input declarations and a name
    appears in at most one bucket.

    Attributes:
        to_install: Packages to batch install.
        to_upgrade: Packages to batch upgrade.
        with_options: (name, options) pairs processed one at a time.
        to_uninstall: Packages explicitly declared absent and still installed.
    """

    to_install: tuple[str, ...] = ()
    to_upgrade: tuple[str, ...] = ()
    with_options: tuple[tuple[str, tuple[str, ...]], ...] = ()
    to_uninstall: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Check if there is nothing to do."""
        return not (self.to_install or self.to_upgrade or self.with_options or self.to_uninstall)

    @property
    def total(self) -> int:
        """Number of classified operations."""
        return (
            len(self.to_install)
            + len(self.to_upgrade)
            + len(self.with_options)
            + len(self.to_uninstall)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "install": list(self.to_install),
            "upgrade": list(self.to_upgrade),
            "with_options": [
                {"name": name, "options": list(options)} for name, options in self.with_options
            ],
            "uninstall": list(self.to_uninstall),
        }


@dataclass(frozen=True, slots=True)
class ReconciliationPlan:
    """Everything one reconciliation pass would change.

    Attributes:
        target: Shard name, manifest path, or "all".
        taps_to_add: Declared taps that are not yet tapped.
        formula_ops: Classified formula operations.
        cask_ops: Classified cask operations.
        implied_formulae: Main formulae no manifest declares any more.
        implied_casks: Main casks no manifest declares any more.
        additive_only: True when implied uninstall is disabled.
    """

    target: str
    taps_to_add: tuple[str, ...] = ()
    formula_ops: PackageOps = field(default_factory=PackageOps)
    cask_ops: PackageOps = field(default_factory=PackageOps)
    implied_formulae: tuple[str, ...] = ()
    implied_casks: tuple[str, ...] = ()
    additive_only: bool = True

    def ops(self, kind: PackageType) -> PackageOps:
        """Classified operations for one package kind."""
        return self.formula_ops if kind == PackageType.FORMULA else self.cask_ops

    def implied(self, kind: PackageType) -> tuple[str, ...]:
        """Implied uninstalls for one package kind."""
        return self.implied_formulae if kind == PackageType.FORMULA else self.implied_casks

    @property
    def is_empty(self) -> bool:
        """Check if the system already matches the desired state."""
        return (
            not self.taps_to_add
            and self.formula_ops.is_empty
            and self.cask_ops.is_empty
            and not self.implied_formulae
            and not self.implied_casks
        )

    @property
    def total_changes(self) -> int:
        """Number of operations the plan would run."""
        return (
            len(self.taps_to_add)
            + self.formula_ops.total
            + self.cask_ops.total
            + len(self.implied_formulae)
            + len(self.implied_casks)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "target": self.target,
            "additive_only": self.additive_only,
            "taps": list(self.taps_to_add),
            "formulae": self.formula_ops.to_dict(),
            "casks": self.cask_ops.to_dict(),
            "implied_uninstall": {
                "formulae": list(self.implied_formulae),
                "casks": list(self.implied_casks),
            },
            "summary": {"total": self.total_changes},
        }
