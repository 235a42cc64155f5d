"""XDG-compliant path management for shardctl.

This module provides standardized paths following the XDG Base Directory
Specification for shards, configuration, and backups.

XDG defaults:
- Config: ~/.config/shardctl/
- Shards: ~/.config/shardctl/shards/
- State: ~/.local/state/shardctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "shardctl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/shardctl/ (or XDG_CONFIG_HOME/shardctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    Returns:
        Path to ~/.local/state/shardctl/ (or XDG_STATE_HOME/shardctl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_shards_dir() -> Path:
    """Get the directory holding active shard manifests.

    Returns:
        Path to ~/.config/shardctl/shards/.
    """
    return get_config_dir() / "shards"


def get_disabled_dir() -> Path:
    """Get the directory holding disabled shard manifests.

    Returns:
        Path to ~/.config/shardctl/shards/disabled/.
    """
    return get_shards_dir() / "disabled"


def get_backups_dir() -> Path:
    """Get the shard backup directory path.

    Backups are timestamped copies written before a shard is disabled
    or deleted. They are never pruned automatically.

    Returns:
        Path to ~/.local/state/shardctl/backups/.
    """
    return get_state_dir() / "backups"


def get_settings_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/shardctl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_user_theme_path() -> Path:
    """Get the user theme configuration path.

    Returns:
        Path to ~/.config/shardctl/theme.toml.
    """
    return get_config_dir() / "theme.toml"
