"""Package processor: classification and execution.

``classify`` turns declarations into per-kind operation buckets without
touching the system. ``PackageExecutor`` runs those buckets against an
actuator, one best-effort stage at a time.
"""

from collections.abc import Callable, Iterable, Sequence

from shardctl.actuators.base import Actuator
from shardctl.core.errors import ShardError
from shardctl.core.kinds import PackageKind
from shardctl.core.observability import ObservabilityContext
from shardctl.models.action import Action, ActionResult, ActionType, failed, succeeded
from shardctl.models.inventory import Inventory
from shardctl.models.manifest import PackageDeclaration, PackageState, PackageType
from shardctl.models.plan import PackageOps


def classify(
    declarations: Iterable[PackageDeclaration],
    inventory: Inventory,
    kind: PackageType,
) -> PackageOps:
    """Classify declarations into install, upgrade, options and uninstall buckets.

    Rules, applied in order:

    1. Absent: uninstall if installed, otherwise nothing.
    2. Any options: individual operation with options.
    3. Not installed: install.
    4. Installed and latest: upgrade.
    5. Installed and present: nothing.

    Args:
        declarations: Declarations of a single kind, in manifest order.
        inventory: Installed package snapshot.
        kind: Kind the declarations belong to.

    Returns:
        PackageOps with input order preserved in every bucket.
    """
    installed = inventory.installed(kind)
    seen: set[str] = set()
    to_install: list[str] = []
    to_upgrade: list[str] = []
    with_options: list[tuple[str, tuple[str, ...]]] = []
    to_uninstall: list[str] = []

    for decl in declarations:
        if decl.name in seen:
            continue
        seen.add(decl.name)
        is_installed = decl.name in installed

        if decl.state == PackageState.ABSENT:
            if is_installed:
                to_uninstall.append(decl.name)
        elif decl.options:
            with_options.append((decl.name, tuple(decl.options)))
        elif not is_installed:
            to_install.append(decl.name)
        elif decl.state == PackageState.LATEST:
            to_upgrade.append(decl.name)

    return PackageOps(
        to_install=tuple(to_install),
        to_upgrade=tuple(to_upgrade),
        with_options=tuple(with_options),
        to_uninstall=tuple(to_uninstall),
    )


class PackageExecutor:
    """Executes classified operations for one package kind at a time.

    Failures never stop the remaining stages. Each failure is logged with
    the package name and recorded as a failed ActionResult.

    Example:
        >>> executor = PackageExecutor(actuator, ObservabilityContext.null())
        >>> results = executor.execute(ops, FORMULA, inventory)
        >>> failed = [r for r in results if r.failed]
    """

    def __init__(self, actuator: Actuator, context: ObservabilityContext) -> None:
        self._actuator = actuator
        self._context = context

    def execute(
        self,
        ops: PackageOps,
        kind: PackageKind,
        inventory: Inventory,
    ) -> list[ActionResult]:
        """Run install, upgrade, options and uninstall stages in that order.

        Args:
            ops: Classified operations.
            kind: Bindings for the package kind.
            inventory: Snapshot used to pick install or upgrade for options.

        Returns:
            One ActionResult per package, in execution order.
        """
        results: list[ActionResult] = []

        if ops.to_install:
            self._context.step("Installing %d %s", len(ops.to_install), kind.label)
            results.extend(
                self._batch(ActionType.INSTALL, kind, ops.to_install, kind.batch_install)
            )

        if ops.to_upgrade:
            self._context.step("Upgrading %d %s", len(ops.to_upgrade), kind.label)
            results.extend(
                self._batch(ActionType.UPGRADE, kind, ops.to_upgrade, kind.batch_upgrade)
            )

        for name, options in ops.with_options:
            if inventory.is_installed(name, kind.type):
                action = Action(ActionType.UPGRADE, name, kind.type, options)
                call = kind.upgrade
            else:
                action = Action(ActionType.INSTALL, name, kind.type, options)
                call = kind.install
            self._context.step("%s %s with options %s", action.label, name, " ".join(options))
            results.append(self._run(action, call, self._actuator, name, options))

        results.extend(self.uninstall(ops.to_uninstall, kind))
        return results

    def uninstall(
        self,
        names: Sequence[str],
        kind: PackageKind,
        reason: str | None = None,
    ) -> list[ActionResult]:
        """Uninstall packages one at a time with force.

        Args:
            names: Packages to remove.
            kind: Bindings for the package kind.
            reason: Reason recorded on each action.

        Returns:
            One ActionResult per package.
        """
        results: list[ActionResult] = []
        for name in names:
            action = Action(ActionType.UNINSTALL, name, kind.type, reason=reason)
            self._context.step("Uninstalling %s %s", kind.type.value, name)
            results.append(self._run(action, kind.uninstall, self._actuator, name, True))
        return results

    def _batch(
        self,
        action_type: ActionType,
        kind: PackageKind,
        names: Sequence[str],
        call: Callable[[Actuator, Sequence[str]], None],
    ) -> list[ActionResult]:
        actions = [Action(action_type, name, kind.type) for name in names]
        try:
            call(self._actuator, list(names))
        except ShardError as e:
            self._context.error(
                "Failed to %s %s %s: %s", action_type.value, kind.label, ", ".join(names), e
            )
            return [failed(action, str(e)) for action in actions]
        return [succeeded(action) for action in actions]

    def _run(self, action: Action, call: Callable[..., None], *args: object) -> ActionResult:
        try:
            call(*args)
        except ShardError as e:
            self._context.error("Failed to %s %s: %s", action.label, action.package, e)
            return failed(action, str(e))
        return succeeded(action)
