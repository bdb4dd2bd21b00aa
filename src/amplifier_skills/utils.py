"""Path-safety utilities shared by the installer and ephemeral-dir cleanup.

Per DRY: One containment check used everywhere a path is computed from input.
"""

import os
from pathlib import Path


def is_path_within(base: Path | str, target: Path | str) -> bool:
    """
    Check that target is base itself or lies beneath it.

    Both paths are made absolute and normalized ("..", ".", duplicate
    separators) before comparison, without touching the filesystem.

    Args:
        base: Expected base directory
        target: Path to validate

    Returns:
        True if target == base or target is a descendant of base

    Examples:
        >>> is_path_within("/home/u/.claude/skills", "/home/u/.claude/skills/pdf")
        True
        >>> is_path_within("/home/u/.claude/skills", "/home/u/.claude/skills/../settings.json")
        False
        >>> is_path_within("/home/u/.claude/skills", "/home/u/.claude/skills-evil")
        False
    """
    normalized_base = os.path.normpath(os.path.abspath(base))
    normalized_target = os.path.normpath(os.path.abspath(target))

    if normalized_target == normalized_base:
        return True
    return normalized_target.startswith(normalized_base.rstrip(os.sep) + os.sep)


def has_traversal_markers(name: str) -> bool:
    """
    Detect names that try to climb out of, or escape, their directory.

    Flags "../", "..\\", a bare "..", a leading "/" or "\\", and NUL bytes.
    """
    if "\0" in name:
        return True
    if name.startswith(("/", "\\")):
        return True
    if name.strip() == "..":
        return True
    return "../" in name or "..\\" in name
