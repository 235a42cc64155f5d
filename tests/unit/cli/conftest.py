"""Fixtures for CLI tests.

Every CLI test runs with its XDG directories inside tmp_path, as user
'alice', and with a FakeActuator in place of Homebrew.
"""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from shardctl.core.shards import ShardManager


@pytest.fixture(autouse=True)
def cli_env(tmp_path: Path) -> Iterator[Path]:
    """Point config and state directories at tmp_path."""
    env = {
        "XDG_CONFIG_HOME": str(tmp_path / "config"),
        "XDG_STATE_HOME": str(tmp_path / "state"),
        "USER": "alice",
    }
    with patch.dict(os.environ, env):
        yield tmp_path


@pytest.fixture
def brew(make_actuator):
    """FakeActuator returned wherever the CLI builds a HomebrewActuator."""
    actuator = make_actuator()
    with patch("shardctl.cli.types.HomebrewActuator") as mock_cls:
        mock_cls.from_settings.return_value = actuator
        yield actuator


@pytest.fixture
def shards(cli_env: Path) -> ShardManager:
    """ShardManager over the same directories the CLI uses."""
    base = cli_env / "config" / "shardctl" / "shards"
    return ShardManager(
        shards_dir=base,
        disabled_dir=base / "disabled",
        backups_dir=cli_env / "state" / "shardctl" / "backups",
        current_user="alice",
    )
