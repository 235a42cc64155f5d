"""Manifest models for declarative package configuration.

This module defines the Pydantic models representing a shard: the set
of taps, formulae and casks it declares plus its metadata.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PackageType(str, Enum):
    """Kind of Homebrew package.

    Formula and cask names are separate namespaces.
    """

    FORMULA = "formula"
    CASK = "cask"


class PackageState(str, Enum):
    """Desired state of a declared package.

    Attributes:
        PRESENT: Installed at any version.
        ABSENT: Not installed.
        LATEST: Installed and upgraded on every apply.
    """

    PRESENT = "present"
    ABSENT = "absent"
    LATEST = "latest"


class PackageDeclaration(BaseModel):
    """A single declared package.

    Attributes:
        name: Formula or cask name.
        state: Desired state.
        version: Requested version, "latest" when unpinned.
        options: Extra install options such as "--HEAD".
        source_manifest: Name of the manifest that declared the package.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: Annotated[str, Field(min_length=1, description="Package name")]
    state: Annotated[PackageState, Field(description="Desired package state")] = (
        PackageState.LATEST
    )
    version: Annotated[str, Field(description="Requested version")] = "latest"
    options: Annotated[
        tuple[str, ...],
        Field(default_factory=tuple, description="Install options"),
    ]
    source_manifest: Annotated[
        str | None, Field(description="Manifest that declared this package")
    ] = None

    @property
    def is_absent(self) -> bool:
        """Check if the package should be removed."""
        return self.state == PackageState.ABSENT


class ManifestMetadata(BaseModel):
    """Metadata section of a manifest.

    Attributes:
        name: Shard name.
        description: Free-form description.
        owner: User who created the shard.
        protected: Whether the shard is protected from modification.
        allowed_users: Users permitted to modify a protected shard.
        version: Manifest schema version.
        created: Timestamp when the manifest was created.
        updated: Timestamp when the manifest was last modified.
    """

    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, Field(description="Shard name")] = ""
    description: Annotated[str, Field(description="Shard description")] = "Package manifest"
    owner: Annotated[str, Field(description="Shard owner")] = ""
    protected: Annotated[bool, Field(description="Shard is protected")] = False
    allowed_users: Annotated[
        list[str],
        Field(default_factory=list, description="Users allowed to modify the shard"),
    ]
    version: Annotated[str, Field(description="Manifest schema version")] = "0.1.0"
    created: Annotated[datetime | None, Field(description="Creation timestamp")] = None
    updated: Annotated[datetime | None, Field(description="Last modification timestamp")] = None


class Manifest(BaseModel):
    """Complete manifest representing the desired package state of one shard.

    Attributes:
        taps: Ordered, de-duplicated list of "owner/repo" taps.
        formulae: Formula declarations keyed by name.
        casks: Cask declarations keyed by name.
        metadata: Manifest metadata.
    """

    model_config = ConfigDict(extra="forbid")

    taps: Annotated[list[str], Field(default_factory=list, description="Taps")]
    formulae: Annotated[
        dict[str, PackageDeclaration],
        Field(default_factory=dict, description="Formula declarations"),
    ]
    casks: Annotated[
        dict[str, PackageDeclaration],
        Field(default_factory=dict, description="Cask declarations"),
    ]
    metadata: Annotated[
        ManifestMetadata,
        Field(default_factory=ManifestMetadata, description="Manifest metadata"),
    ]

    @field_validator("taps")
    @classmethod
    def dedupe_taps(cls, v: list[str]) -> list[str]:
        """Drop repeated taps while keeping first-seen order."""
        return list(dict.fromkeys(v))

    @property
    def name(self) -> str:
        """Shard name from metadata."""
        return self.metadata.name

    def declarations(self, kind: PackageType) -> dict[str, PackageDeclaration]:
        """Get the declaration table for one package kind.

        Args:
            kind: Formula or cask.

        Returns:
            The live name to declaration mapping for that kind.
        """
        return self.formulae if kind == PackageType.FORMULA else self.casks

    def declared_kind(self, name: str) -> PackageType | None:
        """Return the kind a package is declared under, or None."""
        if name in self.formulae:
            return PackageType.FORMULA
        if name in self.casks:
            return PackageType.CASK
        return None

    def add_package(
        self,
        name: str,
        kind: PackageType,
        state: PackageState = PackageState.LATEST,
    ) -> PackageDeclaration:
        """Declare a package under the given kind.

        Returns:
            The new declaration.
        """
        decl = PackageDeclaration(name=name, state=state, source_manifest=self.name or None)
        self.declarations(kind)[name] = decl
        return decl

    def remove_package(self, name: str, kind: PackageType) -> bool:
        """Remove a declaration.

        Returns:
            True if the package was declared under that kind.
        """
        return self.declarations(kind).pop(name, None) is not None

    def touch(self, now: datetime) -> None:
        """Refresh modification metadata."""
        if self.metadata.created is None:
            self.metadata.created = now
        self.metadata.updated = now

    @property
    def package_count(self) -> int:
        """Total number of declared packages."""
        return len(self.formulae) + len(self.casks)
