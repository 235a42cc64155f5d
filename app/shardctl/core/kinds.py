"""Kind-specific bindings between package kinds and actuator calls.

Formulae and casks share every reconciliation rule and differ only in
which actuator methods they call. ``PackageKind`` captures that
difference once and is instantiated as ``FORMULA`` and ``CASK``.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from shardctl.actuators.base import Actuator
from shardctl.models.manifest import PackageType

BatchCall = Callable[[Actuator, Sequence[str]], None]
SingleCall = Callable[[Actuator, str, Sequence[str]], None]
UninstallCall = Callable[[Actuator, str, bool], None]


@dataclass(frozen=True, slots=True)
class PackageKind:
    """Actuator bindings for one package kind.

    Attributes:
        type: Package type these bindings serve.
        label: Plural label for log messages.
    """

    type: PackageType
    label: str
    _batch_install: BatchCall
    _batch_upgrade: BatchCall
    _install: SingleCall
    _upgrade: SingleCall
    _uninstall: UninstallCall

    def batch_install(self, actuator: Actuator, names: Sequence[str]) -> None:
        self._batch_install(actuator, names)

    def batch_upgrade(self, actuator: Actuator, names: Sequence[str]) -> None:
        self._batch_upgrade(actuator, names)

    def install(self, actuator: Actuator, name: str, options: Sequence[str] = ()) -> None:
        self._install(actuator, name, options)

    def upgrade(self, actuator: Actuator, name: str, options: Sequence[str] = ()) -> None:
        self._upgrade(actuator, name, options)

    def uninstall(self, actuator: Actuator, name: str, force: bool = False) -> None:
        self._uninstall(actuator, name, force)

    def is_available(self, actuator: Actuator, name: str) -> bool:
        return actuator.is_available(name, self.type)


FORMULA = PackageKind(
    type=PackageType.FORMULA,
    label="formulae",
    _batch_install=lambda a, names: a.batch_install_formulae(names),
    _batch_upgrade=lambda a, names: a.batch_upgrade_formulae(names),
    _install=lambda a, name, options: a.install_formula(name, options),
    _upgrade=lambda a, name, options: a.upgrade_formula(name, options),
    _uninstall=lambda a, name, force: a.uninstall_formula(name, force=force),
)

CASK = PackageKind(
    type=PackageType.CASK,
    label="casks",
    _batch_install=lambda a, names: a.batch_install_casks(names),
    _batch_upgrade=lambda a, names: a.batch_upgrade_casks(names),
    _install=lambda a, name, options: a.install_cask(name, options),
    _upgrade=lambda a, name, options: a.upgrade_cask(name, options),
    _uninstall=lambda a, name, force: a.uninstall_cask(name, force=force),
)


def kind_for(package_type: PackageType) -> PackageKind:
    """Get the bindings for a package type."""
    return FORMULA if package_type == PackageType.FORMULA else CASK
