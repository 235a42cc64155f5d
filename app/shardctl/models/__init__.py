"""Data models for shardctl.

This module exports the core data structures used throughout the application.
"""

from shardctl.models.action import Action, ActionResult, ActionType
from shardctl.models.inventory import Inventory
from shardctl.models.manifest import (
    Manifest,
    ManifestMetadata,
    PackageDeclaration,
    PackageState,
    PackageType,
)
from shardctl.models.plan import PackageOps, ReconciliationPlan
from shardctl.models.shard import PackageAvailability, PackageInfo, ShardRecord, ShardStatus

__all__ = [
    "Action",
    "ActionResult",
    "ActionType",
    "Inventory",
    "Manifest",
    "ManifestMetadata",
    "PackageAvailability",
    "PackageDeclaration",
    "PackageInfo",
    "PackageOps",
    "PackageState",
    "PackageType",
    "ReconciliationPlan",
    "ShardRecord",
    "ShardStatus",
]
