"""Exception hierarchy for shardctl.

Every error carries the name of the offending shard, package, or path
so that callers can report it without parsing the message.
"""


class ShardError(Exception):
    """Base exception for all shardctl errors.

    Attributes:
        name: Shard, package, or path the error relates to.
    """

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or name)


class NotFoundError(ShardError):
    """Raised when a shard or manifest file does not exist."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(name, message or f"Shard '{name}' not found")


class InvalidNameError(ShardError):
    """Raised when a shard name contains disallowed characters."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(
            name,
            message
            or (
                f"Invalid shard name: '{name}'. Names must only contain letters, "
                "numbers, underscores, and hyphens"
            ),
        )


class AlreadyExistsError(ShardError):
    """Raised when creating a shard that already exists."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(name, message or f"Shard '{name}' already exists")


class ProtectedError(ShardError):
    """Raised when mutating a protected shard without permission."""

    def __init__(self, name: str, message: str | None = None) -> None:
        super().__init__(name, message or f"Cannot modify protected shard: {name}")


class ValidationError(ShardError):
    """Raised when a package name, tap, or option fails validation."""


class ActuatorError(ShardError):
    """Raised when the package manager exits non-zero or cannot be spawned."""


class ActuatorTimeoutError(ActuatorError):
    """Raised when a package manager command exceeds its timeout."""


class ManifestParseError(ShardError):
    """Raised when a manifest file cannot be parsed or validated."""


class FilesystemError(ShardError):
    """Raised when a shard file cannot be read, written, or moved."""


class BackupError(ShardError):
    """Raised when a backup fails; the destructive step is not performed."""
