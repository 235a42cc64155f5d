"""Shard records and package availability."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from shardctl.models.manifest import Manifest, PackageType


class ShardStatus(str, Enum):
    """Where a shard file currently lives."""

    ACTIVE = "active"
    DISABLED = "disabled"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class ShardRecord:
    """A shard as seen on disk.

    Attributes:
        name: Shard name (file stem).
        path: Location of the manifest file, None if not found.
        status: Active, disabled, or not found.
        manifest: Parsed manifest, None if missing or unreadable.
    """

    name: str
    path: Path | None
    status: ShardStatus
    manifest: Manifest | None = None

    @property
    def is_active(self) -> bool:
        """Check if the shard participates in apply."""
        return self.status == ShardStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class PackageAvailability:
    """Whether a name exists as a formula, a cask, or both."""

    name: str
    as_formula: bool
    as_cask: bool

    @property
    def exists(self) -> bool:
        """Check if the package exists under any kind."""
        return self.as_formula or self.as_cask


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """Catalog details for one formula or cask.

    Attributes:
        name: Package name.
        kind: Formula or cask.
        version: Current stable version, empty if unknown.
        description: One-line description, empty if none.
    """

    name: str
    kind: PackageType
    version: str = ""
    description: str = ""
