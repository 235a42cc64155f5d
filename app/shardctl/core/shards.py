"""Shard lifecycle management.

A shard is one manifest file. Active shards live in the shards directory,
disabled shards in its ``disabled`` subdirectory. Every destructive
operation on an existing shard writes a timestamped backup first and
stops if the backup fails.
"""

import logging
import os
import shutil
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path

from shardctl.core.config import Settings
from shardctl.core.errors import (
    AlreadyExistsError,
    BackupError,
    FilesystemError,
    ManifestParseError,
    NotFoundError,
    ProtectedError,
)
from shardctl.core.manifest import load_manifest, save_manifest
from shardctl.core.paths import get_backups_dir, get_disabled_dir, get_shards_dir
from shardctl.core.validation import validate_shard_name
from shardctl.models.manifest import Manifest, ManifestMetadata
from shardctl.models.shard import ShardRecord, ShardStatus

logger = logging.getLogger(__name__)

DEFAULT_PROTECTED_SHARDS: tuple[str, ...] = ("system", "user")
MANIFEST_SUFFIX = ".toml"

# (name, description, current user allowed)
_DEFAULT_SHARDS: tuple[tuple[str, str, bool], ...] = (
    ("system", "System-wide packages", False),
    ("user", "User packages", True),
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def current_username() -> str:
    """Acting user from $USER, empty if unset."""
    return os.environ.get("USER", "")


class ShardManager:
    """Creates, deletes, disables, enables, and inspects shards.

    Attributes:
        shards_dir: Directory of active shard manifests.
        disabled_dir: Directory of disabled shard manifests.
        backups_dir: Directory receiving backups before destructive operations.
        protected_names: Shard names that are always protected.
        current_user: User checked against a shard's allowed_users.

    Example:
        >>> manager = ShardManager.from_settings(load_settings())
        >>> manager.create("work", "Work machine tools")
        >>> manager.disable("work")
    """

    def __init__(
        self,
        shards_dir: Path,
        disabled_dir: Path,
        backups_dir: Path,
        protected_names: Iterable[str] = DEFAULT_PROTECTED_SHARDS,
        current_user: str | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.shards_dir = shards_dir
        self.disabled_dir = disabled_dir
        self.backups_dir = backups_dir
        self.protected_names = frozenset(protected_names)
        self.current_user = current_username() if current_user is None else current_user
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShardManager":
        """Build a manager rooted at the XDG shard directories."""
        return cls(
            shards_dir=get_shards_dir(),
            disabled_dir=get_disabled_dir(),
            backups_dir=get_backups_dir(),
            protected_names=settings.protected_shards,
        )

    # Paths and status

    def active_path(self, name: str) -> Path:
        return self.shards_dir / f"{name}{MANIFEST_SUFFIX}"

    def disabled_path(self, name: str) -> Path:
        return self.disabled_dir / f"{name}{MANIFEST_SUFFIX}"

    def status(self, name: str) -> ShardStatus:
        """Where the shard currently lives."""
        if self.active_path(name).exists():
            return ShardStatus.ACTIVE
        if self.disabled_path(name).exists():
            return ShardStatus.DISABLED
        return ShardStatus.NOT_FOUND

    def exists(self, name: str) -> bool:
        return self.status(name) != ShardStatus.NOT_FOUND

    def path_of(self, name: str) -> Path | None:
        """Path of the shard file in whichever directory holds it."""
        status = self.status(name)
        if status == ShardStatus.ACTIVE:
            return self.active_path(name)
        if status == ShardStatus.DISABLED:
            return self.disabled_path(name)
        return None

    def info(self, name: str) -> ShardRecord:
        """Describe a shard, parsing its manifest when possible.

        An unparseable manifest yields a record with manifest=None.
        """
        path = self.path_of(name)
        status = self.status(name)
        if path is None:
            return ShardRecord(name=name, path=None, status=status)
        try:
            manifest = load_manifest(path)
        except ManifestParseError as e:
            logger.warning("Cannot parse shard %s: %s", name, e)
            manifest = None
        return ShardRecord(name=name, path=path, status=status, manifest=manifest)

    def list_active(self) -> list[str]:
        """Sorted names of active shards."""
        return _list_stems(self.shards_dir)

    def list_disabled(self) -> list[str]:
        """Sorted names of disabled shards."""
        return _list_stems(self.disabled_dir)

    def all_records(self) -> list[ShardRecord]:
        """Records for every active shard followed by every disabled shard."""
        names = [*self.list_active(), *self.list_disabled()]
        return [self.info(name) for name in dict.fromkeys(names)]

    def load(self, name: str) -> Manifest:
        """Load an active shard.

        Raises:
            NotFoundError: If no active shard has that name.
            ManifestParseError: If the shard cannot be parsed.
        """
        path = self.active_path(name)
        if not path.exists():
            raise NotFoundError(name)
        return load_manifest(path)

    def now(self) -> datetime:
        """Current time from the manager clock."""
        return self._clock()

    def save(self, name: str, manifest: Manifest) -> Path:
        """Write an active shard, refreshing its modification metadata."""
        manifest.touch(self._clock())
        return save_manifest(manifest, self.active_path(name))

    def active_manifests(self) -> list[Manifest]:
        """Parse every active shard, sorted by name.

        Raises:
            ManifestParseError: On the first shard that fails to parse.
        """
        return [self.load(name) for name in self.list_active()]

    # Protection

    def is_protected(self, name: str) -> bool:
        """Check if a shard is protected by name or by its metadata.

        An existing shard whose manifest cannot be read counts as protected.
        """
        if name in self.protected_names:
            return True
        if self.path_of(name) is None:
            return False
        manifest = self._read_quietly(name)
        return manifest is None or manifest.metadata.protected

    def can_modify(self, name: str, user: str | None = None) -> bool:
        """Check if a user may mutate a shard.

        Unprotected and not-yet-existing shards are always modifiable.
        Protected shards require the user to be listed in allowed_users, and
        an unreadable protected shard is never modifiable.
        """
        if not self.is_protected(name):
            return True
        if self.path_of(name) is None:
            return True
        acting = self.current_user if user is None else user
        manifest = self._read_quietly(name)
        return manifest is not None and acting in manifest.metadata.allowed_users

    def check_can_modify(self, name: str) -> None:
        """Raise ProtectedError unless the current user may mutate the shard."""
        if not self.can_modify(name):
            raise ProtectedError(name)

    # Lifecycle

    def create(
        self,
        name: str,
        description: str = "",
        protected: bool = False,
        allowed_users: Iterable[str] = (),
        add_current_user: bool = True,
    ) -> Path:
        """Create an empty active shard.

        The current user is added to allowed_users unless add_current_user
        is False.

        Returns:
            Path of the new manifest.

        Raises:
            InvalidNameError: If the name is not allowed.
            AlreadyExistsError: If an active or disabled shard has that name.
        """
        validate_shard_name(name)
        if self.exists(name):
            raise AlreadyExistsError(name)

        users = list(allowed_users)
        if add_current_user:
            users.append(self.current_user)
        users = list(dict.fromkeys(users))
        manifest = Manifest(
            metadata=ManifestMetadata(
                name=name,
                description=description or f"{name} shard",
                owner=self.current_user,
                protected=protected,
                allowed_users=[u for u in users if u],
            )
        )
        path = self.save(name, manifest)
        logger.info("Created shard %s at %s", name, path)
        return path

    def delete(self, name: str, force: bool = False) -> Path:
        """Back up and permanently remove a shard.

        Returns:
            Path of the backup.

        Raises:
            NotFoundError: If the shard does not exist.
            ProtectedError: If the shard is protected and force is not set or
                the current user is not allowed.
            BackupError: If the backup fails; the shard is left untouched.
            FilesystemError: If the shard file cannot be removed.
        """
        validate_shard_name(name)
        path = self.path_of(name)
        if path is None:
            raise NotFoundError(name)

        if self.is_protected(name):
            if not force:
                raise ProtectedError(
                    name, f"Shard '{name}' is protected. Use --force to delete it"
                )
            self.check_can_modify(name)

        backup = self.backup(name, path)
        try:
            path.unlink()
        except OSError as e:
            raise FilesystemError(name, f"Failed to remove shard {path}: {e}") from e
        logger.info("Deleted shard %s (backup: %s)", name, backup)
        return backup

    def disable(self, name: str) -> ShardRecord:
        """Back up an active shard and move it to the disabled directory.

        Already-disabled shards are returned unchanged.

        Raises:
            NotFoundError: If the shard does not exist.
            ProtectedError: If the current user may not modify the shard.
            BackupError: If the backup fails; the shard is left active.
        """
        validate_shard_name(name)
        status = self.status(name)
        if status == ShardStatus.NOT_FOUND:
            raise NotFoundError(name)
        if status == ShardStatus.DISABLED:
            logger.debug("Shard %s is already disabled", name)
            return self.info(name)

        self.check_can_modify(name)
        source = self.active_path(name)
        self.backup(name, source)
        self._move(name, source, self.disabled_path(name))
        logger.info("Disabled shard %s", name)
        return self.info(name)

    def enable(self, name: str) -> ShardRecord:
        """Move a disabled shard back and refresh its updated timestamp.

        An unparseable manifest is moved back unchanged unless its name is
        on the protected list.

        Raises:
            NotFoundError: If the shard does not exist.
            ProtectedError: If the current user may not modify the shard.
        """
        validate_shard_name(name)
        status = self.status(name)
        if status == ShardStatus.NOT_FOUND:
            raise NotFoundError(name)
        if status == ShardStatus.ACTIVE:
            logger.debug("Shard %s is already active", name)
            return self.info(name)

        source = self.disabled_path(name)
        try:
            manifest = load_manifest(source)
        except ManifestParseError as e:
            if name in self.protected_names:
                raise ProtectedError(name, f"Protected shard '{name}' cannot be read: {e}") from e
            logger.warning("Cannot parse shard %s, moving it unchanged: %s", name, e)
            self._move(name, source, self.active_path(name))
        else:
            self.check_can_modify(name)
            self.save(name, manifest)
            try:
                source.unlink()
            except OSError as e:
                raise FilesystemError(name, f"Failed to remove {source}: {e}") from e
        logger.info("Enabled shard %s", name)
        return self.info(name)

    def init_defaults(self, force: bool = False) -> list[str]:
        """Create the protected system and user shards.

        Existing shards are kept unless force is set, in which case they are
        backed up and recreated. Every existing shard is checked for
        permission before any of them is touched.

        Returns:
            Names of the shards that were created.

        Raises:
            ProtectedError: If force is set and the current user may not
                modify an existing default shard.
            BackupError: If a backup fails.
            FilesystemError: If an old shard file cannot be removed.
        """
        if force:
            for name, _, _ in _DEFAULT_SHARDS:
                if self.path_of(name) is not None:
                    self.check_can_modify(name)

        created: list[str] = []
        for name, description, allow_current in _DEFAULT_SHARDS:
            path = self.path_of(name)
            if path is not None:
                if not force:
                    logger.debug("Shard %s already exists, skipping", name)
                    continue
                self.backup(name, path)
                try:
                    path.unlink()
                except OSError as e:
                    raise FilesystemError(name, f"Failed to remove shard {path}: {e}") from e
            self.create(name, description, protected=True, add_current_user=allow_current)
            created.append(name)
        return created

    def resolve_path(self, target: str) -> Path:
        """Resolve a shard name or manifest path to a file path.

        Targets containing "/" or ending in ".toml" are treated as paths.

        Raises:
            InvalidNameError: If a non-path target is not a valid shard name.
        """
        if "/" in target or target.endswith(MANIFEST_SUFFIX):
            return Path(target).expanduser()
        validate_shard_name(target)
        return self.active_path(target)

    def name_for_path(self, path: Path) -> str | None:
        """Shard name for a path inside the active or disabled directory.

        Returns:
            The file stem, or None if the path is not a managed shard file.
        """
        if path.suffix != MANIFEST_SUFFIX:
            return None
        parent = path.expanduser().resolve().parent
        for directory in (self.shards_dir, self.disabled_dir):
            if parent == directory.expanduser().resolve():
                return path.stem
        return None

    def backup(self, name: str, path: Path) -> Path:
        """Copy a shard file into the backups directory.

        Returns:
            Path of the backup file.

        Raises:
            BackupError: If the copy fails.
        """
        stamp = self._clock().strftime("%Y%m%dT%H%M%S%fZ")
        destination = self.backups_dir / f"{name}_backup_{stamp}{MANIFEST_SUFFIX}"
        try:
            self.backups_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, destination)
        except OSError as e:
            raise BackupError(name, f"Failed to back up shard {name}: {e}") from e
        logger.debug("Backed up %s to %s", path, destination)
        return destination

    # Helpers

    def _read_quietly(self, name: str) -> Manifest | None:
        path = self.path_of(name)
        if path is None:
            return None
        try:
            return load_manifest(path)
        except (ManifestParseError, FilesystemError) as e:
            logger.warning("Cannot read shard %s: %s", name, e)
            return None

    def _move(self, name: str, source: Path, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            os.replace(source, destination)
        except OSError as e:
            raise FilesystemError(name, f"Failed to move {source} to {destination}: {e}") from e


def _list_stems(directory: Path) -> list[str]:
    if not directory.is_dir():
        return []
    return sorted(p.stem for p in directory.glob(f"*{MANIFEST_SUFFIX}") if p.is_file())
