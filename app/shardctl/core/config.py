"""User settings for shardctl.

Settings live in ``~/.config/shardctl/config.toml``. Every field has a
default, so a missing file is equivalent to an empty one.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shardctl.core.paths import get_settings_path

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the settings file cannot be read or is invalid."""


class Settings(BaseModel):
    """Runtime settings.

    Attributes:
        brew_path: Executable used for package manager calls.
        query_timeout: Seconds allowed for read-only brew queries.
        command_timeout: Seconds allowed for mutating brew commands, None for no limit.
        cleanup_prune_all: Pass --prune=all to brew cleanup.
        protected_shards: Shard names that are always protected.
        extra_critical_packages: Packages added to the built-in critical allowlist.
    """

    model_config = ConfigDict(extra="forbid")

    brew_path: Annotated[str, Field(description="Path to the brew executable")] = "brew"
    query_timeout: Annotated[
        float, Field(gt=0, description="Timeout for brew queries in seconds")
    ] = 60.0
    command_timeout: Annotated[
        float | None, Field(gt=0, description="Timeout for mutating brew commands")
    ] = 1800.0
    cleanup_prune_all: Annotated[
        bool, Field(description="Remove all cached downloads on cleanup")
    ] = True
    protected_shards: Annotated[
        list[str],
        Field(
            default_factory=lambda: ["system", "user"],
            description="Shard names that cannot be modified by other users",
        ),
    ]
    extra_critical_packages: Annotated[
        list[str],
        Field(
            default_factory=list,
            description="Packages that implied uninstall must never remove",
        ),
    ]

    @field_validator("brew_path")
    @classmethod
    def validate_brew_path(cls, v: str) -> str:
        """Reject an empty brew path."""
        if not v.strip():
            msg = "brew_path cannot be empty"
            raise ValueError(msg)
        return v


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Settings file. If None, uses the default location.

    Returns:
        Validated Settings, or defaults when the file does not exist.

    Raises:
        ConfigError: If the file is unreadable, not valid TOML, or fails validation.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        logger.debug("No settings file at %s, using defaults", settings_path)
        return Settings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax in {settings_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read settings: {e}") from e

    # Explicit zero or empty string disables the mutating command timeout
    if data.get("command_timeout") in (0, ""):
        data["command_timeout"] = None

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {settings_path}: {e}") from e


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Write settings atomically.

    Returns:
        Path where the settings were saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    data = settings.model_dump(exclude_none=True)
    if settings.command_timeout is None:
        data["command_timeout"] = 0

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write settings: {e}") from e

    return settings_path
