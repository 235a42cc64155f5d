"""Adding and removing packages in shards.

Both operations validate every name and check protection before touching
anything. Optional installs and uninstalls run before the shard is
written back, so an interrupted write-back can be retried without
repeating package manager work.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from shardctl.actuators.base import Actuator
from shardctl.core.config import Settings
from shardctl.core.errors import NotFoundError, ProtectedError, ValidationError
from shardctl.core.kinds import kind_for
from shardctl.core.manifest import load_manifest, save_manifest
from shardctl.core.observability import ObservabilityContext
from shardctl.core.processor import PackageExecutor
from shardctl.core.reconcile import ALL_TARGET, ApplyReport, Reconciler
from shardctl.core.shards import ShardManager
from shardctl.core.validation import validate_package_name
from shardctl.models.action import ActionResult
from shardctl.models.inventory import Inventory
from shardctl.models.manifest import Manifest, ManifestMetadata, PackageType
from shardctl.models.plan import PackageOps
from shardctl.models.shard import ShardStatus

DEFAULT_SHARD = "user"


@dataclass(frozen=True, slots=True)
class ChangedPackage:
    """A package added to or removed from a shard."""

    name: str
    kind: PackageType
    shard: str


@dataclass(frozen=True, slots=True)
class PackageChange:
    """Outcome of an add or remove operation.

    Attributes:
        changed: Packages added or removed.
        skipped: (name, reason) pairs for packages left alone.
        results: Install or uninstall results, empty unless requested.
        dry_run: Nothing was written or executed.
        report: Result of the follow-up apply, None unless requested.
    """

    changed: tuple[ChangedPackage, ...] = ()
    skipped: tuple[tuple[str, str], ...] = ()
    results: tuple[ActionResult, ...] = field(default_factory=tuple)
    dry_run: bool = False
    report: ApplyReport | None = None

    @property
    def success(self) -> bool:
        """True when every install, uninstall and applied action succeeded."""
        if any(r.failed for r in self.results):
            return False
        return self.report is None or self.report.success


@dataclass(slots=True)
class _ShardTarget:
    label: str
    path: Path
    manifest: Manifest
    managed: bool


class PackageOperations:
    """Adds packages to and removes packages from shards.

    Example:
        >>> ops = PackageOperations(actuator, manager, context)
        >>> change = ops.add_packages(["firefox", "wget"], None, "user", dry_run=False)
        >>> [(c.name, c.kind.value) for c in change.changed]
        [('firefox', 'cask'), ('wget', 'formula')]
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
        self._executor = PackageExecutor(actuator, self._context)
        self._reconciler = Reconciler(actuator, manager, self._context, settings)

    def determine_kind(self, name: str, kind_hint: PackageType | None) -> PackageType | None:
        """Pick the kind a new package should be declared as.

        A hint is honored only if the package exists as that kind. Without a
        hint, cask wins over formula when the name exists as both.

        Returns:
            The kind, or None if the package cannot be found.
        """
        if kind_hint is not None:
            if kind_for(kind_hint).is_available(self._actuator, name):
                return kind_hint
            self._context.warning("%s is not available as a %s", name, kind_hint.value)
            return None

        availability = self._actuator.check_availability(name)
        if availability.as_cask:
            return PackageType.CASK
        if availability.as_formula:
            return PackageType.FORMULA
        self._context.warning("%s is not available as a formula or cask", name)
        return None

    def add_packages(
        self,
        names: Sequence[str],
        kind_hint: PackageType | None,
        shard_target: str = DEFAULT_SHARD,
        dry_run: bool = False,
        install: bool = False,
        apply: bool = False,
    ) -> PackageChange:
        """Declare packages in a shard.

        Args:
            names: Packages to add.
            kind_hint: Force formula or cask, None to detect.
            shard_target: Shard name or manifest path. Missing shards are created.
            dry_run: Report what would change without writing or installing.
            install: Install the added packages before saving.
            apply: Apply every active shard after saving. Conflicts with install.

        Returns:
            PackageChange describing added and skipped packages.

        Raises:
            ValidationError: If any name is invalid or the options conflict.
            ProtectedError: If the shard may not be modified.
            InvalidNameError: If the shard name is invalid.
        """
        if install and apply:
            raise ValidationError("--apply", "--apply cannot be combined with --install")
        for name in names:
            validate_package_name(name)
        target = self._open(shard_target, create=True)

        added: list[ChangedPackage] = []
        skipped: list[tuple[str, str]] = []
        for name in dict.fromkeys(names):
            declared = target.manifest.declared_kind(name)
            if declared is not None:
                skipped.append((name, f"already declared as {declared.value}"))
                continue
            kind = self.determine_kind(name, kind_hint)
            if kind is None:
                wanted = kind_hint.value if kind_hint else "formula or cask"
                skipped.append((name, f"not available as {wanted}"))
                continue
            added.append(ChangedPackage(name=name, kind=kind, shard=target.label))

        if dry_run or not added:
            return PackageChange(changed=tuple(added), skipped=tuple(skipped), dry_run=dry_run)

        results: list[ActionResult] = []
        if install:
            results = self._install(added)
            failed_names = {r.action.package for r in results if r.failed}
            for package in added:
                if package.name in failed_names:
                    skipped.append((package.name, "install failed"))
            added = [p for p in added if p.name not in failed_names]

        for package in added:
            target.manifest.add_package(package.name, package.kind)
        if added:
            self._save(target)
            self._context.success("Added %d package(s) to %s", len(added), target.label)

        report = self._apply_all() if apply and added else None
        return PackageChange(
            changed=tuple(added), skipped=tuple(skipped), results=tuple(results), report=report
        )

    def remove_packages(
        self,
        names: Sequence[str],
        kind_hint: PackageType | None,
        shard_target: str = DEFAULT_SHARD,
        dry_run: bool = False,
        uninstall: bool = False,
        apply: bool = False,
    ) -> PackageChange:
        """Remove package declarations from a shard or from every shard.

        Formulae are searched first and casks second, unless a hint limits
        the search to one kind. "all" covers every active, unprotected shard.

        Args:
            names: Packages to remove.
            kind_hint: Only remove declarations of this kind.
            shard_target: Shard name, manifest path, or "all".
            dry_run: Report what would change without writing or uninstalling.
            uninstall: Uninstall the removed packages before saving.
            apply: Apply every active shard after saving. Conflicts with uninstall.

        Returns:
            PackageChange describing removed and skipped packages.

        Raises:
            ValidationError: If any name is invalid or the options conflict.
            NotFoundError: If the shard does not exist.
            ProtectedError: If the shard may not be modified.
        """
        if uninstall and apply:
            raise ValidationError("--apply", "--apply cannot be combined with --uninstall")
        for name in names:
            validate_package_name(name)

        if shard_target == ALL_TARGET:
            shard_names = [
                n for n in self._manager.list_active() if not self._manager.is_protected(n)
            ]
            if not shard_names:
                self._context.warning("No active, unprotected shards to remove packages from")
            targets = [self._open(n, create=False) for n in shard_names]
        else:
            targets = [self._open(shard_target, create=False)]

        if kind_hint is None:
            search = (PackageType.FORMULA, PackageType.CASK)
        else:
            search = (kind_hint,)

        removed: list[ChangedPackage] = []
        touched: list[_ShardTarget] = []
        for target in targets:
            hit = False
            for name in dict.fromkeys(names):
                for kind in search:
                    if name in target.manifest.declarations(kind):
                        if not dry_run:
                            target.manifest.remove_package(name, kind)
                        removed.append(ChangedPackage(name=name, kind=kind, shard=target.label))
                        hit = True
                        break
            if hit:
                touched.append(target)

        found = {p.name for p in removed}
        skipped = [(n, "not declared") for n in dict.fromkeys(names) if n not in found]

        if dry_run or not removed:
            return PackageChange(changed=tuple(removed), skipped=tuple(skipped), dry_run=dry_run)

        results: list[ActionResult] = []
        if uninstall:
            results = self._uninstall(removed)

        for target in touched:
            self._save(target)
        self._context.success("Removed %d declaration(s)", len(removed))

        report = self._apply_all() if apply else None
        return PackageChange(
            changed=tuple(removed), skipped=tuple(skipped), results=tuple(results), report=report
        )

    def _open(self, shard_target: str, create: bool) -> _ShardTarget:
        path = self._manager.resolve_path(shard_target)
        # Paths into the shard directories go through the named shard
        name = self._manager.name_for_path(path)
        managed = name is not None

        if name is not None:
            status = self._manager.status(name)
            if status == ShardStatus.DISABLED:
                raise NotFoundError(name, f"Shard '{name}' is disabled. Enable it first")
            if status == ShardStatus.NOT_FOUND and not create:
                raise NotFoundError(name)
            self._manager.check_can_modify(name)
            path = self._manager.active_path(name)
        elif not path.exists() and not create:
            raise NotFoundError(str(path), f"Manifest not found: {path}")

        if path.exists():
            manifest = load_manifest(path)
        else:
            manifest = Manifest(
                metadata=ManifestMetadata(
                    name=path.stem,
                    owner=self._manager.current_user,
                    allowed_users=[u for u in [self._manager.current_user] if u],
                )
            )

        if not managed:
            meta = manifest.metadata
            if meta.protected and self._manager.current_user not in meta.allowed_users:
                raise ProtectedError(str(path))

        return _ShardTarget(label=path.stem, path=path, manifest=manifest, managed=managed)

    def _save(self, target: _ShardTarget) -> None:
        if target.managed:
            self._manager.save(target.label, target.manifest)
        else:
            target.manifest.touch(self._manager.now())
            save_manifest(target.manifest, target.path)

    def _apply_all(self) -> ApplyReport:
        self._context.step("Applying all active shards")
        return self._reconciler.apply(ALL_TARGET)

    def _install(self, packages: Sequence[ChangedPackage]) -> list[ActionResult]:
        results: list[ActionResult] = []
        for package_type in (PackageType.FORMULA, PackageType.CASK):
            names = tuple(p.name for p in packages if p.kind == package_type)
            if names:
                ops = PackageOps(to_install=names)
                results.extend(self._executor.execute(ops, kind_for(package_type), Inventory()))
        return results

    def _uninstall(self, packages: Sequence[ChangedPackage]) -> list[ActionResult]:
        results: list[ActionResult] = []
        for package_type in (PackageType.FORMULA, PackageType.CASK):
            names = list(dict.fromkeys(p.name for p in packages if p.kind == package_type))
            if names:
                results.extend(self._executor.uninstall(names, kind_for(package_type)))
        return results
