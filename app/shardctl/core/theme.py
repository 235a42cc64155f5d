"""Theme management for the shardctl CLI.

Default colors are defined on the ThemeColors model. A user theme file
(``[colors]`` table in theme.toml) may override any subset of them.
"""

import logging
import re
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from shardctl.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

# Styles rendered in bold on top of their base color
_BOLD_STYLES = frozenset({"error", "shard_active"})


class ThemeColors(BaseModel):
    """Color palette for the shardctl CLI.

    Every value is a hex code, #RGB or #RRGGBB.
    """

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#e0a458"
    border: str = "#5c4b37"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Plan rows
    added: str = "#c1ff62"
    removed: str = "#f53263"
    changed: str = "#0e8ac8"

    formula: str = "#f9d094"
    cask: str = "#9ecbff"

    shard_active: str = "#03b971"
    shard_disabled: str = "#636e72"

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, v: object) -> str:
        if not isinstance(v, str) or not _HEX_COLOR.match(v.strip()):
            raise ValueError(f"expected a hex color like #a1b2c3, got {v!r}")
        return v.strip()


def _read_overrides(path: Path) -> dict[str, str]:
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return {}
    return {str(k): v for k, v in colors.items() if isinstance(v, str)}


def load_theme(path: Path | None = None) -> ThemeColors:
    """Load the palette, applying user overrides when they validate.

    Args:
        path: Theme file. Defaults to ~/.config/shardctl/theme.toml.

    Returns:
        ThemeColors with overrides applied, or the defaults when the file
        is missing or invalid.
    """
    theme_path = path or get_user_theme_path()
    overrides = _read_overrides(theme_path)
    if not overrides:
        return ThemeColors()

    try:
        colors = ThemeColors(**overrides)
    except ValidationError as e:
        logger.warning("Invalid theme %s, using defaults: %s", theme_path, e)
        return ThemeColors()
    logger.debug("Loaded theme overrides from %s", theme_path)
    return colors


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich Theme used by the shared consoles."""
    colors = colors or load_theme()
    styles = {
        name: f"bold {value}" if name in _BOLD_STYLES else value
        for name, value in colors.model_dump().items()
    }
    styles["bold_header"] = f"bold {colors.header}"
    styles["dim"] = colors.muted
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
