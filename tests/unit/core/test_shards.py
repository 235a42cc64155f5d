"""Unit tests for shard lifecycle management."""

from pathlib import Path
from unittest.mock import patch

import pytest
from shardctl.core.errors import (
    AlreadyExistsError,
    BackupError,
    FilesystemError,
    InvalidNameError,
    NotFoundError,
    ProtectedError,
)
from shardctl.core.manifest import load_manifest, save_manifest
from shardctl.core.shards import ShardManager
from shardctl.models.manifest import Manifest, ManifestMetadata, PackageType
from shardctl.models.shard import ShardStatus


def backups(manager: ShardManager) -> list[Path]:
    if not manager.backups_dir.exists():
        return []
    return sorted(manager.backups_dir.iterdir())


class TestCreate:
    """Tests for ShardManager.create."""

    def test_creates_active_manifest(self, manager: ShardManager) -> None:
        """A new shard is an empty active manifest owned by the current user."""
        path = manager.create("work", "Work tools")

        assert path == manager.shards_dir / "work.toml"
        manifest = load_manifest(path)
        assert manifest.package_count == 0
        assert manifest.metadata.name == "work"
        assert manifest.metadata.description == "Work tools"
        assert manifest.metadata.owner == "alice"
        assert manifest.metadata.allowed_users == ["alice"]
        assert manifest.metadata.created is not None
        assert manager.status("work") == ShardStatus.ACTIVE

    def test_default_description(self, manager: ShardManager) -> None:
        """An empty description defaults to '<name> shard'."""
        manifest = load_manifest(manager.create("dev"))
        assert manifest.metadata.description == "dev shard"

    def test_rejects_invalid_name(self, manager: ShardManager) -> None:
        """Invalid names create nothing."""
        with pytest.raises(InvalidNameError):
            manager.create("my shard")
        assert manager.list_active() == []

    def test_rejects_existing(self, manager: ShardManager) -> None:
        """Creating an existing shard fails."""
        manager.create("work")
        with pytest.raises(AlreadyExistsError):
            manager.create("work")

    def test_rejects_existing_disabled(self, manager: ShardManager) -> None:
        """A disabled shard also blocks its name."""
        manager.create("work")
        manager.disable("work")
        with pytest.raises(AlreadyExistsError):
            manager.create("work")


class TestDelete:
    """Tests for ShardManager.delete."""

    def test_backs_up_then_removes(self, manager: ShardManager) -> None:
        """Deleting writes a timestamped backup and removes the file."""
        manager.create("work")

        backup = manager.delete("work")

        assert backup.name == "work_backup_20250115T103000123456Z.toml"
        assert backup.exists()
        assert manager.status("work") == ShardStatus.NOT_FOUND

    def test_missing(self, manager: ShardManager) -> None:
        """Deleting a missing shard raises NotFoundError."""
        with pytest.raises(NotFoundError):
            manager.delete("ghost")

    def test_protected_requires_force(self, manager: ShardManager) -> None:
        """Protected shards are kept without force."""
        manager.init_defaults()
        with pytest.raises(ProtectedError):
            manager.delete("user")
        assert manager.exists("user")
        assert backups(manager) == []

    def test_protected_with_force_and_permission(self, manager: ShardManager) -> None:
        """An allowed user can force-delete a protected shard."""
        manager.init_defaults()
        manager.delete("user", force=True)
        assert not manager.exists("user")

    def test_protected_with_force_without_permission(self, manager: ShardManager) -> None:
        """Force does not bypass allowed_users."""
        manager.init_defaults()
        with pytest.raises(ProtectedError):
            manager.delete("system", force=True)
        assert manager.exists("system")

    def test_backup_failure_keeps_shard(self, manager: ShardManager) -> None:
        """A failed backup stops the delete."""
        manager.create("work")
        with (
            patch("shardctl.core.shards.shutil.copy2", side_effect=OSError("disk full")),
            pytest.raises(BackupError),
        ):
            manager.delete("work")
        assert manager.status("work") == ShardStatus.ACTIVE


class TestDisableEnable:
    """Tests for disable and enable."""

    def test_disable_moves_to_disabled_dir(self, manager: ShardManager) -> None:
        """Disabling moves the file and leaves a backup."""
        manager.create("work")

        record = manager.disable("work")

        assert record.status == ShardStatus.DISABLED
        assert manager.disabled_path("work").exists()
        assert not manager.active_path("work").exists()
        assert manager.list_active() == []
        assert manager.list_disabled() == ["work"]
        assert len(backups(manager)) == 1

    def test_disable_is_idempotent(self, manager: ShardManager) -> None:
        """Disabling a disabled shard does nothing."""
        manager.create("work")
        manager.disable("work")
        record = manager.disable("work")
        assert record.status == ShardStatus.DISABLED
        assert len(backups(manager)) == 1

    def test_disable_backup_failure_keeps_active(self, manager: ShardManager) -> None:
        """A failed backup leaves the shard active."""
        manager.create("work")
        with (
            patch("shardctl.core.shards.shutil.copy2", side_effect=OSError("read-only")),
            pytest.raises(BackupError),
        ):
            manager.disable("work")
        assert manager.status("work") == ShardStatus.ACTIVE

    def test_disable_protected_denied(self, manager: ShardManager) -> None:
        """Users outside allowed_users cannot disable a protected shard."""
        manager.init_defaults()
        with pytest.raises(ProtectedError):
            manager.disable("system")

    def test_disable_protected_allowed(self, manager: ShardManager) -> None:
        """A user listed in allowed_users can disable a protected shard."""
        manager.init_defaults()

        record = manager.disable("user")

        assert record.status == ShardStatus.DISABLED
        assert manager.status("user") == ShardStatus.DISABLED
        assert [p.name.split("_backup_")[0] for p in backups(manager)] == ["user"]

    def test_enable_unparseable_protected_name(self, manager: ShardManager) -> None:
        """A broken shard on the protected list stays disabled."""
        manager.disabled_dir.mkdir(parents=True)
        manager.disabled_path("system").write_text("formulae = [")

        with pytest.raises(ProtectedError):
            manager.enable("system")
        assert manager.status("system") == ShardStatus.DISABLED

    def test_enable_round_trip(self, manager: ShardManager) -> None:
        """Enabling restores the manifest and refreshes updated."""
        path = manager.create("work")
        manifest = load_manifest(path)
        manifest.add_package("git", PackageType.FORMULA)
        save_manifest(manifest, path)
        manager.disable("work")

        record = manager.enable("work")

        assert record.status == ShardStatus.ACTIVE
        assert not manager.disabled_path("work").exists()
        restored = manager.load("work")
        assert "git" in restored.formulae
        assert restored.metadata.updated is not None

    def test_enable_already_active(self, manager: ShardManager) -> None:
        """Enabling an active shard does nothing."""
        manager.create("work")
        assert manager.enable("work").status == ShardStatus.ACTIVE

    def test_enable_missing(self, manager: ShardManager) -> None:
        """Enabling a missing shard raises NotFoundError."""
        with pytest.raises(NotFoundError):
            manager.enable("ghost")

    def test_enable_unparseable_moves_unchanged(self, manager: ShardManager) -> None:
        """A broken disabled manifest is moved back as-is."""
        manager.disabled_dir.mkdir(parents=True)
        manager.disabled_path("broken").write_text("formulae = [")

        manager.enable("broken")

        assert manager.active_path("broken").read_text() == "formulae = ["


class TestProtection:
    """Tests for protection checks."""

    def test_protected_by_name(self, manager: ShardManager) -> None:
        """Configured names are always protected."""
        assert manager.is_protected("system") is True

    def test_protected_by_metadata(self, manager: ShardManager) -> None:
        """The metadata flag protects other shards."""
        manager.create("locked", protected=True, add_current_user=False)
        assert manager.is_protected("locked") is True
        assert manager.can_modify("locked") is False
        assert manager.can_modify("locked", user="bob") is False

    def test_allowed_users(self, manager: ShardManager) -> None:
        """Listed users may modify a protected shard."""
        manager.create("team", protected=True, allowed_users=["bob"])
        assert manager.can_modify("team") is True
        assert manager.can_modify("team", user="bob") is True
        assert manager.can_modify("team", user="carol") is False

    def test_unprotected_is_modifiable(self, manager: ShardManager) -> None:
        """Anyone may modify an unprotected shard."""
        manager.create("work")
        assert manager.can_modify("work", user="mallory") is True

    def test_missing_protected_name_is_modifiable(self, manager: ShardManager) -> None:
        """A protected name that does not exist yet can be created."""
        assert manager.can_modify("user") is True

    def test_unreadable_protected_shard(self, manager: ShardManager) -> None:
        """A protected shard that cannot be parsed is never modifiable."""
        manager.shards_dir.mkdir(parents=True)
        manager.active_path("system").write_text("not = [valid")
        assert manager.can_modify("system") is False

    def test_unreadable_shard_counts_as_protected(self, manager: ShardManager) -> None:
        """An existing shard that cannot be parsed is treated as protected."""
        manager.shards_dir.mkdir(parents=True)
        manager.active_path("broken").write_text("not = [valid")

        assert manager.is_protected("broken") is True
        with pytest.raises(ProtectedError):
            manager.delete("broken")
        assert manager.exists("broken")

    def test_unknown_metadata_key_keeps_protection(self, manager: ShardManager) -> None:
        """Extra metadata keys do not drop a shard's protection."""
        manager.shards_dir.mkdir(parents=True)
        manager.active_path("locked").write_text(
            '[metadata]\nprotected = true\nallowed_users = ["bob"]\npriority = 1\n'
        )

        assert manager.is_protected("locked") is True
        assert manager.can_modify("locked") is False
        with pytest.raises(ProtectedError):
            manager.delete("locked")
        with pytest.raises(ProtectedError):
            manager.delete("locked", force=True)
        assert manager.exists("locked")


class TestInitDefaults:
    """Tests for init_defaults."""

    def test_creates_system_and_user(self, manager: ShardManager) -> None:
        """Both default shards are created protected."""
        created = manager.init_defaults()

        assert created == ["system", "user"]
        system = manager.load("system").metadata
        user = manager.load("user").metadata
        assert system.protected is True
        assert system.allowed_users == []
        assert user.protected is True
        assert user.allowed_users == ["alice"]

    def test_skips_existing(self, manager: ShardManager) -> None:
        """Existing default shards are kept."""
        manager.init_defaults()
        assert manager.init_defaults() == []
        assert backups(manager) == []

    def test_force_recreates_with_backup(self, manager: ShardManager) -> None:
        """Force backs up and recreates shards the user may modify."""
        manager.init_defaults()
        system = manager.load("system")
        system.metadata.allowed_users.append("alice")
        manager.save("system", system)
        manifest = manager.load("user")
        manifest.add_package("git", PackageType.FORMULA)
        manager.save("user", manifest)

        created = manager.init_defaults(force=True)

        assert created == ["system", "user"]
        assert manager.load("user").package_count == 0
        assert len(backups(manager)) == 2

    def test_force_denied_for_protected_shard(self, manager: ShardManager) -> None:
        """Force fails before any change if one default shard is off limits."""
        manager.init_defaults()
        system = manager.load("system")
        system.add_package("git", PackageType.FORMULA)
        manager.save("system", system)

        with pytest.raises(ProtectedError):
            manager.init_defaults(force=True)

        assert "git" in manager.load("system").formulae
        assert backups(manager) == []

    def test_force_unlink_failure(self, manager: ShardManager) -> None:
        """A shard file that cannot be removed raises FilesystemError."""
        manager.create("user", protected=True)
        with (
            patch.object(Path, "unlink", side_effect=OSError("busy")),
            pytest.raises(FilesystemError),
        ):
            manager.init_defaults(force=True)
        assert manager.exists("user")


class TestQueries:
    """Tests for listing, loading and path resolution."""

    def test_list_sorted(self, manager: ShardManager) -> None:
        """Active shards are listed by name."""
        for name in ("zeta", "alpha", "mid"):
            manager.create(name)
        assert manager.list_active() == ["alpha", "mid", "zeta"]

    def test_all_records(self, manager: ShardManager) -> None:
        """Records cover active and disabled shards."""
        manager.create("a")
        manager.create("b")
        manager.disable("b")

        records = manager.all_records()

        assert [(r.name, r.status) for r in records] == [
            ("a", ShardStatus.ACTIVE),
            ("b", ShardStatus.DISABLED),
        ]

    def test_info_unparseable(self, manager: ShardManager) -> None:
        """A broken manifest gives a record without a manifest."""
        manager.shards_dir.mkdir(parents=True)
        manager.active_path("broken").write_text("[[")
        record = manager.info("broken")
        assert record.status == ShardStatus.ACTIVE
        assert record.manifest is None

    def test_load_disabled_is_not_found(self, manager: ShardManager) -> None:
        """load() only reads active shards."""
        manager.create("work")
        manager.disable("work")
        with pytest.raises(NotFoundError):
            manager.load("work")

    def test_active_manifests(self, manager: ShardManager) -> None:
        """Every active shard is parsed in name order."""
        manager.create("b")
        manager.create("a")
        assert [m.name for m in manager.active_manifests()] == ["a", "b"]

    def test_resolve_name(self, manager: ShardManager) -> None:
        """Plain names map to the active shard path."""
        assert manager.resolve_path("work") == manager.shards_dir / "work.toml"

    def test_resolve_path(self, manager: ShardManager, tmp_path: Path) -> None:
        """Paths are returned as given."""
        target = tmp_path / "other.toml"
        assert manager.resolve_path(str(target)) == target
        assert manager.resolve_path("local.toml") == Path("local.toml")

    def test_name_for_managed_paths(self, manager: ShardManager) -> None:
        """Files in the shard directories map back to their shard name."""
        assert manager.name_for_path(manager.active_path("work")) == "work"
        assert manager.name_for_path(manager.disabled_path("work")) == "work"

    def test_name_for_other_paths(self, manager: ShardManager, tmp_path: Path) -> None:
        """Files elsewhere are not managed shards."""
        assert manager.name_for_path(tmp_path / "work.toml") is None
        assert manager.name_for_path(manager.shards_dir / "notes.txt") is None

    def test_resolve_invalid_name(self, manager: ShardManager) -> None:
        """Non-path targets must be valid shard names."""
        with pytest.raises(InvalidNameError):
            manager.resolve_path("bad name")

    def test_save_touches_metadata(self, manager: ShardManager) -> None:
        """save() stamps created and updated from the clock."""
        manifest = Manifest(metadata=ManifestMetadata(name="x"))
        manager.save("x", manifest)

        loaded = manager.load("x")
        assert loaded.metadata.created == manager.now()
        assert loaded.metadata.updated == manager.now()
