"""Reconciliation driver for apply and diff.

One pass runs these stages in order, with no rollback between them::

    SyncTaps -> ClassifyFormulae -> ExecuteFormulae -> ClassifyCasks
    -> ExecuteCasks -> ImpliedUninstall (optional) -> Cleanup (optional)

``diff`` builds the plan with the same ``plan()`` call that ``apply``
executes, so what diff shows is exactly what apply runs.
"""

from dataclasses import dataclass
from typing import Any

from shardctl.actuators.base import Actuator
from shardctl.core.baseline import is_critical
from shardctl.core.config import Settings
from shardctl.core.errors import NotFoundError, ShardError
from shardctl.core.inventory import snapshot
from shardctl.core.kinds import CASK, FORMULA, PackageKind
from shardctl.core.manifest import load_manifest
from shardctl.core.merger import merge
from shardctl.core.observability import ObservabilityContext
from shardctl.core.processor import PackageExecutor, classify
from shardctl.core.shards import ShardManager
from shardctl.models.action import Action, ActionResult, ActionType, failed, succeeded
from shardctl.models.inventory import Inventory
from shardctl.models.manifest import Manifest, PackageType
from shardctl.models.plan import ReconciliationPlan

ALL_TARGET = "all"
IMPLIED_REASON = "No longer declared in any active shard"


@dataclass(frozen=True, slots=True)
class ApplyReport:
    """Outcome of an apply pass.

    Attributes:
        plan: The plan that was executed.
        results: Every action result, in execution order.
    """

    plan: ReconciliationPlan
    results: tuple[ActionResult, ...] = ()

    @property
    def success(self) -> bool:
        """True when no action failed."""
        return not any(r.failed for r in self.results)

    @property
    def failures(self) -> list[str]:
        """One message per failed action."""
        return [
            f"{r.action.label} {r.action.package}: {r.error or 'unknown error'}"
            for r in self.results
            if r.failed
        ]

    def summary(self) -> dict[str, int]:
        """Counts of succeeded, failed and total actions."""
        failed_count = sum(1 for r in self.results if r.failed)
        return {
            "succeeded": len(self.results) - failed_count,
            "failed": failed_count,
            "total": len(self.results),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "success": self.success,
            "summary": self.summary(),
            "failures": self.failures,
        }


class Reconciler:
    """Reconciles installed packages with one shard or all active shards.

    Example:
        >>> reconciler = Reconciler(actuator, manager, context, settings)
        >>> plan = reconciler.diff("all")
        >>> report = reconciler.apply("all")
        >>> report.success
        True
    """

    def __init__(
        self,
        actuator: Actuator,
        manager: ShardManager,
        context: ObservabilityContext | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._actuator = actuator
        self._manager = manager
        self._context = context or ObservabilityContext.null()
        self._settings = settings or Settings()
        self._executor = PackageExecutor(actuator, self._context)

    def plan(
        self,
        manifest: Manifest,
        inventory: Inventory,
        additive_only: bool,
        target: str = "",
    ) -> ReconciliationPlan:
        """Compute the plan for a manifest against an inventory.

        This is pure: nothing is queried or executed.

        Args:
            manifest: Desired state, usually merged.
            inventory: Installed package snapshot.
            additive_only: Skip implied uninstall when True.
            target: Label recorded on the plan.

        Returns:
            The ReconciliationPlan.
        """
        taps_to_add = tuple(t for t in manifest.taps if t not in inventory.installed_taps)
        formula_ops = classify(manifest.formulae.values(), inventory, PackageType.FORMULA)
        cask_ops = classify(manifest.casks.values(), inventory, PackageType.CASK)

        implied_formulae: tuple[str, ...] = ()
        implied_casks: tuple[str, ...] = ()
        if not additive_only:
            implied_formulae = self._implied(manifest, inventory, PackageType.FORMULA)
            implied_casks = self._implied(manifest, inventory, PackageType.CASK)

        return ReconciliationPlan(
            target=target or manifest.name,
            taps_to_add=taps_to_add,
            formula_ops=formula_ops,
            cask_ops=cask_ops,
            implied_formulae=implied_formulae,
            implied_casks=implied_casks,
            additive_only=additive_only,
        )

    def load_target(self, target: str) -> tuple[Manifest, bool]:
        """Load the desired state for a target.

        Args:
            target: Shard name, manifest path, or "all".

        Returns:
            Tuple of (manifest, additive_only). "all" merges every active
            shard in name order and is the only non-additive target.

        Raises:
            NotFoundError: If the shard or file does not exist, or "all"
                finds no active shard.
            ManifestParseError: If any manifest fails to parse.
        """
        if target == ALL_TARGET:
            manifests = self._manager.active_manifests()
            if not manifests:
                raise NotFoundError(ALL_TARGET, "No active shards found")
            self._context.debug("Merging %d active shards", len(manifests))
            return merge(manifests), False

        path = self._manager.resolve_path(target)
        return load_manifest(path), True

    def diff(self, target: str) -> ReconciliationPlan:
        """Build the plan for a target without executing it."""
        manifest, additive_only = self.load_target(target)
        inventory = snapshot(self._actuator)
        return self.plan(manifest, inventory, additive_only, target=target)

    def apply(self, target: str, skip_cleanup: bool = False) -> ApplyReport:
        """Reconcile the system with a target.

        Loading, parsing and the inventory read happen before any change.
        After that every stage is best-effort.

        Args:
            target: Shard name, manifest path, or "all".
            skip_cleanup: Do not run the cleanup stage.

        Returns:
            ApplyReport with every action result.

        Raises:
            NotFoundError, ManifestParseError, ActuatorError: Before any mutation.
        """
        manifest, additive_only = self.load_target(target)
        inventory = snapshot(self._actuator)
        plan = self.plan(manifest, inventory, additive_only, target=target)
        return self.execute(plan, inventory, skip_cleanup=skip_cleanup)

    def execute(
        self,
        plan: ReconciliationPlan,
        inventory: Inventory,
        skip_cleanup: bool = False,
    ) -> ApplyReport:
        """Run a previously computed plan."""
        results: list[ActionResult] = []

        results.extend(self._sync_taps(plan.taps_to_add))
        for kind in (FORMULA, CASK):
            results.extend(self._executor.execute(plan.ops(kind.type), kind, inventory))

        if not plan.additive_only:
            results.extend(self._implied_uninstall(plan, FORMULA))
            results.extend(self._implied_uninstall(plan, CASK))

        if not skip_cleanup:
            results.append(self._cleanup())

        report = ApplyReport(plan=plan, results=tuple(results))
        counts = report.summary()
        if report.success:
            self._context.success(
                "Applied %s: %d action(s) succeeded", plan.target, counts["total"]
            )
        else:
            self._context.warning(
                "Applied %s with %d failure(s) out of %d action(s)",
                plan.target,
                counts["failed"],
                counts["total"],
            )
        return report

    def _implied(
        self,
        manifest: Manifest,
        inventory: Inventory,
        kind: PackageType,
    ) -> tuple[str, ...]:
        desired = {d.name for d in manifest.declarations(kind).values() if not d.is_absent}
        extra = self._settings.extra_critical_packages
        return tuple(
            sorted(
                name
                for name in inventory.main_packages(kind)
                if name not in desired and not is_critical(name, extra)
            )
        )

    def _sync_taps(self, taps: tuple[str, ...]) -> list[ActionResult]:
        if taps:
            self._context.step("Adding %d tap(s)", len(taps))
        results: list[ActionResult] = []
        for tap in taps:
            action = Action(ActionType.TAP, tap)
            try:
                self._actuator.add_tap(tap)
            except ShardError as e:
                self._context.error("Failed to add tap %s: %s", tap, e)
                results.append(failed(action, str(e)))
            else:
                results.append(succeeded(action))
        return results

    def _implied_uninstall(self, plan: ReconciliationPlan, kind: PackageKind) -> list[ActionResult]:
        names = plan.implied(kind.type)
        if not names:
            return []
        self._context.step("Removing %d undeclared %s", len(names), kind.label)
        return self._executor.uninstall(names, kind, reason=IMPLIED_REASON)

    def _cleanup(self) -> ActionResult:
        action = Action(ActionType.CLEANUP, "cleanup")
        self._context.step("Cleaning up")
        try:
            self._actuator.cleanup(prune_all=self._settings.cleanup_prune_all)
        except ShardError as e:
            self._context.error("Cleanup failed: %s", e)
            return failed(action, str(e))
        return succeeded(action)
