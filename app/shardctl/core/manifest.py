"""Manifest file I/O operations.

This module parses and serializes shard manifests in TOML format.

Three historical encodings are accepted and normalized into one
canonical declaration set. Decoders run in priority order and the
first decoder to declare a name wins:

1. Structured arrays of tables: ``formulas``, ``casks_structured``,
   ``taps_structured``.
2. Simplified string lists: ``formulae``, ``casks``, ``taps``, with
   entries of the form ``"name"`` or ``"name:version"``.
3. The legacy ``brews`` string list, whose entries are casks.

Serialization writes the simplified form wherever it is lossless and
the structured form everywhere else.
"""

import logging
import os
import tomllib
from collections.abc import Callable, Iterator
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError as PydanticValidationError

from shardctl.core.errors import (
    FilesystemError,
    ManifestParseError,
    NotFoundError,
    ValidationError,
)
from shardctl.core.validation import validate_option, validate_package_name, validate_tap_name
from shardctl.models.manifest import (
    Manifest,
    ManifestMetadata,
    PackageDeclaration,
    PackageState,
    PackageType,
)

logger = logging.getLogger(__name__)

# (kind, declaration) pairs yielded by a decoder
DecodedPackage = tuple[PackageType, PackageDeclaration]

_KNOWN_KEYS = frozenset(
    {
        "formulas",
        "casks_structured",
        "taps_structured",
        "formulae",
        "casks",
        "taps",
        "brews",
        "metadata",
    }
)


def parse(data: bytes, source: str | None = None) -> Manifest:
    """Parse manifest bytes into a Manifest.

    Args:
        data: Raw TOML document.
        source: Manifest name recorded on every declaration, usually the file stem.

    Returns:
        Normalized Manifest.

    Raises:
        ManifestParseError: If the document is not valid TOML, has the wrong
            shape, or declares an invalid package, tap or option.
    """
    label = source or "<manifest>"
    try:
        raw = tomllib.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ManifestParseError(label, f"Manifest {label} is not valid UTF-8: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ManifestParseError(label, f"Invalid TOML syntax in {label}: {e}") from e

    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        logger.warning("Ignoring unknown keys in %s: %s", label, ", ".join(unknown))

    try:
        metadata = _decode_metadata(raw.get("metadata", {}), source)
        taps = _decode_taps(raw)
        formulae: dict[str, PackageDeclaration] = {}
        casks: dict[str, PackageDeclaration] = {}
        for decoder in _DECODERS:
            for kind, decl in decoder(raw, source):
                table = formulae if kind == PackageType.FORMULA else casks
                # Earlier encodings take precedence over later duplicates
                if decl.name not in table:
                    table[decl.name] = decl
        return Manifest(taps=taps, formulae=formulae, casks=casks, metadata=metadata)
    except ValidationError as e:
        raise ManifestParseError(label, f"Invalid manifest {label}: {e}") from e
    except PydanticValidationError as e:
        raise ManifestParseError(label, f"Invalid manifest content in {label}: {e}") from e
    except (TypeError, ValueError, AttributeError) as e:
        raise ManifestParseError(label, f"Malformed manifest {label}: {e}") from e


def serialize(manifest: Manifest) -> bytes:
    """Serialize a Manifest to TOML bytes.

    Declarations in state latest without options are written as simplified
    strings. Everything else goes to the structured arrays.
    """
    data: dict[str, Any] = {}

    if manifest.taps:
        data["taps"] = list(manifest.taps)

    for kind, simple_key, structured_key in (
        (PackageType.FORMULA, "formulae", "formulas"),
        (PackageType.CASK, "casks", "casks_structured"),
    ):
        simple: list[str] = []
        structured: list[dict[str, Any]] = []
        for decl in manifest.declarations(kind).values():
            if decl.state == PackageState.LATEST and not decl.options:
                if decl.version == "latest":
                    simple.append(decl.name)
                else:
                    simple.append(f"{decl.name}:{decl.version}")
            else:
                structured.append(_declaration_to_dict(decl))
        if simple:
            data[simple_key] = simple
        if structured:
            data[structured_key] = structured

    data["metadata"] = _metadata_to_dict(manifest.metadata)
    return tomli_w.dumps(data).encode("utf-8")


def load_manifest(path: Path) -> Manifest:
    """Load and validate a manifest from a TOML file.

    Args:
        path: Path to the manifest file.

    Returns:
        Validated Manifest whose declarations carry the file stem as source.

    Raises:
        NotFoundError: If the manifest file doesn't exist.
        FilesystemError: If the file cannot be read.
        ManifestParseError: If the content is invalid.
    """
    if not path.exists():
        raise NotFoundError(path.stem, f"Manifest not found: {path}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise FilesystemError(str(path), f"Failed to read manifest {path}: {e}") from e

    return parse(data, source=path.stem)


def save_manifest(manifest: Manifest, path: Path) -> Path:
    """Save a manifest to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.
    The temporary file is cleaned up on failure.

    Args:
        manifest: The Manifest object to save.
        path: Destination path.

    Returns:
        Path where the manifest was saved.

    Raises:
        FilesystemError: If the file cannot be written.
    """
    data = serialize(manifest)

    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write(data)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise FilesystemError(str(path), f"Failed to write manifest {path}: {e}") from e

    logger.debug("Saved manifest %s", path)
    return path


def _decode_metadata(raw: Any, source: str | None) -> ManifestMetadata:
    """Build metadata, folding the deprecated protection_level into protected.

    Unknown metadata keys are dropped with a warning.
    """
    if not isinstance(raw, dict):
        msg = "metadata must be a table"
        raise TypeError(msg)
    fields = dict(raw)
    unknown = sorted(set(fields) - set(ManifestMetadata.model_fields) - {"protection_level"})
    if unknown:
        logger.warning(
            "Ignoring unknown metadata keys in %s: %s", source or "<manifest>", ", ".join(unknown)
        )
    level = fields.pop("protection_level", None)
    if level is not None:
        fields["protected"] = bool(fields.get("protected", False)) or int(level) > 0
    if not fields.get("name") and source:
        fields["name"] = source
    return ManifestMetadata.model_validate(fields)


def _decode_taps(raw: dict[str, Any]) -> list[str]:
    taps: list[str] = []
    for entry in _table_list(raw, "taps_structured"):
        taps.append(validate_tap_name(str(entry["name"])))
    for entry in _string_list(raw, "taps"):
        taps.append(validate_tap_name(entry))
    return list(dict.fromkeys(taps))


def _decode_structured(raw: dict[str, Any], source: str | None) -> Iterator[DecodedPackage]:
    for key, kind in (("formulas", PackageType.FORMULA), ("casks_structured", PackageType.CASK)):
        for entry in _table_list(raw, key):
            options = entry.get("options", [])
            if not isinstance(options, list):
                msg = f"options for {entry.get('name')} must be a list"
                raise TypeError(msg)
            state = str(entry.get("state", PackageState.LATEST.value)).lower()
            yield kind, PackageDeclaration(
                name=validate_package_name(str(entry["name"])),
                state=PackageState(state),
                version=str(entry.get("version", "latest")),
                options=tuple(validate_option(str(o)) for o in options),
                source_manifest=source,
            )


def _decode_simplified(raw: dict[str, Any], source: str | None) -> Iterator[DecodedPackage]:
    for key, kind in (("formulae", PackageType.FORMULA), ("casks", PackageType.CASK)):
        for entry in _string_list(raw, key):
            yield kind, _simple_declaration(entry, source)


def _decode_brews(raw: dict[str, Any], source: str | None) -> Iterator[DecodedPackage]:
    for entry in _string_list(raw, "brews"):
        yield PackageType.CASK, _simple_declaration(entry, source)


_DECODERS: tuple[Callable[[dict[str, Any], str | None], Iterator[DecodedPackage]], ...] = (
    _decode_structured,
    _decode_simplified,
    _decode_brews,
)


def _simple_declaration(entry: str, source: str | None) -> PackageDeclaration:
    name, _, version = entry.partition(":")
    return PackageDeclaration(
        name=validate_package_name(name.strip()),
        state=PackageState.LATEST,
        version=version.strip() or "latest",
        source_manifest=source,
    )


def _string_list(raw: dict[str, Any], key: str) -> list[str]:
    value = raw.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"'{key}' must be a list of strings"
        raise TypeError(msg)
    return value


def _table_list(raw: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = raw.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        msg = f"'{key}' must be an array of tables"
        raise TypeError(msg)
    for entry in value:
        if "name" not in entry:
            msg = f"every entry in '{key}' needs a name"
            raise ValueError(msg)
    return value


def _declaration_to_dict(decl: PackageDeclaration) -> dict[str, Any]:
    result: dict[str, Any] = {"name": decl.name, "version": decl.version}
    if decl.options:
        result["options"] = list(decl.options)
    result["state"] = decl.state.value
    return result


def _metadata_to_dict(meta: ManifestMetadata) -> dict[str, Any]:
    result: dict[str, Any] = {
        "name": meta.name,
        "description": meta.description,
        "owner": meta.owner,
        "protected": meta.protected,
        "allowed_users": list(meta.allowed_users),
        "version": meta.version,
    }
    if meta.created is not None:
        result["created"] = meta.created.isoformat()
    if meta.updated is not None:
        result["updated"] = meta.updated.isoformat()
    return result
