"""Merging of several manifests into one desired state.

The merged manifest is additive: a package declared present or latest
anywhere is desired, and absent declarations are dropped rather than
subtracted.
"""

from collections.abc import Iterable

from shardctl.models.manifest import (
    Manifest,
    ManifestMetadata,
    PackageDeclaration,
    PackageState,
    PackageType,
)

MERGED_NAME = "merged"


def merge(manifests: Iterable[Manifest]) -> Manifest:
    """Merge manifests into a single unprotected manifest named "merged".

    Per package name and kind:

    - state is latest if any input is latest, otherwise present;
    - absent declarations are dropped;
    - the first non-empty options and first pinned version win;
    - source_manifest is the first manifest that desires the package.

    Taps are an ordered union. Pass manifests in a stable order (the
    reconciler sorts by shard name) since options and versions depend on it.

    Args:
        manifests: Manifests to merge.

    Returns:
        New merged Manifest. Inputs are not modified.
    """
    taps: list[str] = []
    merged: dict[PackageType, dict[str, PackageDeclaration]] = {
        PackageType.FORMULA: {},
        PackageType.CASK: {},
    }

    for manifest in manifests:
        taps.extend(manifest.taps)
        for kind, table in merged.items():
            for decl in manifest.declarations(kind).values():
                if decl.state == PackageState.ABSENT:
                    continue
                current = table.get(decl.name)
                if current is None:
                    source = decl.source_manifest or manifest.name or None
                    table[decl.name] = decl.model_copy(update={"source_manifest": source})
                else:
                    table[decl.name] = _combine(current, decl)

    return Manifest(
        taps=list(dict.fromkeys(taps)),
        formulae=merged[PackageType.FORMULA],
        casks=merged[PackageType.CASK],
        metadata=ManifestMetadata(
            name=MERGED_NAME,
            description="Merged manifest",
            protected=False,
        ),
    )


def _combine(current: PackageDeclaration, other: PackageDeclaration) -> PackageDeclaration:
    latest = PackageState.LATEST in (current.state, other.state)
    return current.model_copy(
        update={
            "state": PackageState.LATEST if latest else PackageState.PRESENT,
            "options": current.options or other.options,
            "version": current.version if current.version != "latest" else other.version,
        }
    )
