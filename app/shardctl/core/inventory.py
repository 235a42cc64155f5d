"""Inventory snapshot collection."""

import logging

from shardctl.actuators.base import Actuator
from shardctl.core.errors import ActuatorError
from shardctl.models.inventory import Inventory

logger = logging.getLogger(__name__)


def snapshot(actuator: Actuator) -> Inventory:
    """Read the installed package state in one go.

    Runs the four package manager queries. Any failure aborts the whole
    snapshot, so a partial inventory is never returned.

    Args:
        actuator: Package manager actuator to query.

    Returns:
        Immutable Inventory.

    Raises:
        ActuatorError: If any query fails. Timeouts raise ActuatorTimeoutError.
    """
    try:
        formulae = actuator.list_installed_formulae()
        casks = actuator.list_installed_casks()
        taps = actuator.list_installed_taps()
        dependencies = actuator.list_dependency_formulae()
    except ActuatorError as e:
        logger.error("Failed to read installed packages: %s", e)
        raise

    inventory = Inventory(
        installed_formulae=frozenset(formulae),
        installed_casks=frozenset(casks),
        installed_taps=frozenset(taps),
        dependency_formulae=frozenset(dependencies),
    )
    logger.debug(
        "Inventory: %d formulae (%d dependencies), %d casks, %d taps",
        len(inventory.installed_formulae),
        len(inventory.dependency_formulae),
        len(inventory.installed_casks),
        len(inventory.installed_taps),
    )
    return inventory
