"""Critical package definitions.

This module defines packages and patterns that implied uninstall must
never remove, because removing them would break the shell, version
control, or TLS on the host.
"""

import fnmatch
from collections.abc import Iterable

# Critical package name patterns (glob-style)
CRITICAL_PATTERNS: list[str] = [
    # TLS
    "openssl*",
    "libressl*",
    # Language runtimes other tools link against
    "python@*",
    "readline*",
    "ncurses*",
]


# Explicitly critical package names (exact matches)
CRITICAL_PACKAGES: set[str] = {
    # Shells
    "bash",
    "zsh",
    "fish",
    # Version control
    "git",
    # Network and certificates
    "ca-certificates",
    "curl",
    # Core utilities
    "coreutils",
    "gnu-sed",
    "gnupg",
    "xz",
    "zlib",
}


def is_critical(package_name: str, extra: Iterable[str] = ()) -> bool:
    """Check if a package is critical and must not be implicitly removed.

    A package is critical if it matches any of the critical patterns, is in
    the explicit critical set, or is in the caller-supplied extra names.
    The built-in lists can be extended, never shrunk.

    Args:
        package_name: Name of the package to check.
        extra: Additional critical names, e.g. from user settings.

    Returns:
        True if the package is critical, False otherwise.
    """
    if package_name in CRITICAL_PACKAGES or package_name in set(extra):
        return True

    return any(fnmatch.fnmatch(package_name, pattern) for pattern in CRITICAL_PATTERNS)
