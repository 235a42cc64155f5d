"""Input validation for values passed to the package manager.

Every package name, tap name, and option string is checked against an
allow-list pattern before it reaches a subprocess argument list. The
patterns reject shell metacharacters outright.
"""

import re

from shardctl.core.errors import InvalidNameError, ValidationError

# Alphanumerics plus _ - . + @ (versioned formulae such as openssl@3)
PACKAGE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_\-.+@]*$")

# owner/repo
TAP_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]+/[a-zA-Z0-9_\-]+$")

# -x, --flag, --flag=value
OPTION_PATTERN = re.compile(r"^--?[a-zA-Z0-9_\-]+(=[a-zA-Z0-9_\-.+/]+)?$")

SHARD_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")

# Shell metacharacters never allowed in a search query
SEARCH_FORBIDDEN_CHARS = frozenset(";&|<>`\n")


def validate_package_name(name: str) -> str:
    """Validate a formula or cask name.

    Args:
        name: Package name to check.

    Returns:
        The name unchanged.

    Raises:
        ValidationError: If the name is empty or contains disallowed characters.
    """
    if not name:
        raise ValidationError(name, "Package name cannot be empty")
    if not PACKAGE_NAME_PATTERN.match(name):
        raise ValidationError(
            name,
            f"Invalid package name format: '{name}'. Names must contain only letters, "
            "numbers, dots, dashes, underscores, plus signs, and at signs, and must "
            "start with a letter or number",
        )
    return name


def validate_tap_name(name: str) -> str:
    """Validate a tap name of the form owner/repo.

    Raises:
        ValidationError: If the tap name is malformed.
    """
    if not name:
        raise ValidationError(name, "Tap name cannot be empty")
    if not TAP_NAME_PATTERN.match(name):
        raise ValidationError(
            name, f"Invalid tap name format: '{name}'. Names must be in the format 'user/repo'"
        )
    return name


def validate_option(option: str) -> str:
    """Validate a single install option such as ``--HEAD``.

    Raises:
        ValidationError: If the option is malformed.
    """
    if not option:
        raise ValidationError(option, "Option cannot be empty")
    if not OPTION_PATTERN.match(option):
        raise ValidationError(
            option,
            f"Invalid option format: '{option}'. Options must start with - or -- "
            "followed by alphanumeric characters, and may include an = with a value",
        )
    return option


def validate_options(options: list[str] | tuple[str, ...]) -> list[str]:
    """Validate every option in a sequence.

    Returns:
        The options as a list.
    """
    return [validate_option(option) for option in options]


def validate_search_query(query: str) -> str:
    """Validate a search term for ``brew search``.

    Returns:
        The query with surrounding whitespace removed.

    Raises:
        ValidationError: If the query is empty, looks like an option, or
            contains a shell metacharacter.
    """
    term = query.strip()
    if not term:
        raise ValidationError(query, "Search query cannot be empty")
    if term.startswith("-"):
        raise ValidationError(query, f"Invalid search query: '{term}'. Queries cannot start with -")
    bad = sorted(SEARCH_FORBIDDEN_CHARS.intersection(term))
    if bad:
        raise ValidationError(
            query,
            f"Invalid search query: '{term}'. Queries cannot contain {' '.join(map(repr, bad))}",
        )
    return term


def is_valid_shard_name(name: str) -> bool:
    """Check whether a shard name is non-empty and alphanumeric plus _ and -."""
    return bool(name) and SHARD_NAME_PATTERN.match(name) is not None


def validate_shard_name(name: str) -> str:
    """Validate a shard name.

    Raises:
        InvalidNameError: If the name is empty or contains disallowed characters.
    """
    if not is_valid_shard_name(name):
        raise InvalidNameError(name)
    return name
