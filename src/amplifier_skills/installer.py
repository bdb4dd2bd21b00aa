"""Skill installation - copy a discovered skill into a target directory.

Per IMPLEMENTATION_PHILOSOPHY:
- Target path injection: Apps determine WHERE to install (agents.py, SkillsContext)
- Every computed path is checked to stay inside its base before anything is written
- Failures are reported per (skill, target) pair, never raised to siblings
"""

import logging
import os
import re
import shutil
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .schema import Skill
from .utils import has_traversal_markers
from .utils import is_path_within

logger = logging.getLogger(__name__)

TRAVERSAL_ERROR = "Invalid skill name: potential path traversal detected"

DEFAULT_SKILL_DIR_NAME = "unnamed-skill"

MAX_NAME_LENGTH = 255

# Not copied into installed skills; names starting with "_" are skipped too.
EXCLUDE_FILES = frozenset({"README.md", "metadata.json"})

_SEPARATORS = re.compile(r"[/\\:\0]")
_EDGE_DOTS_AND_SPACE = re.compile(r"^[.\s]+|[.\s]+$")


class InstallResult(BaseModel):
    """Outcome of installing one skill into one target."""

    model_config = ConfigDict(frozen=True)

    success: bool
    path: str
    error: str | None = None


def sanitize_skill_name(name: str) -> str:
    """
    Make a skill name safe to use as a single directory name.

    Examples:
        >>> sanitize_skill_name("release-notes")
        'release-notes'
        >>> sanitize_skill_name(" ..hidden. ")
        'hidden'
        >>> sanitize_skill_name("...")
        'unnamed-skill'
    """
    sanitized = _SEPARATORS.sub("", name)
    sanitized = _EDGE_DOTS_AND_SPACE.sub("", sanitized)
    sanitized = sanitized.lstrip(".")

    if not sanitized:
        sanitized = DEFAULT_SKILL_DIR_NAME

    return sanitized[:MAX_NAME_LENGTH]


def resolve_skill_dir(skill_name: str, target_base: Path) -> Path | None:
    """
    Compute the install directory for a skill name under target_base.

    Returns:
        target_base / sanitized name, or None when the name is a traversal attempt
    """
    if has_traversal_markers(skill_name):
        return None

    target_dir = target_base / sanitize_skill_name(skill_name)
    if not is_path_within(target_base, target_dir):
        return None
    return target_dir


def is_excluded(name: str) -> bool:
    """True for administrative files that are not part of an installed skill."""
    return name in EXCLUDE_FILES or name.startswith("_")


def _ignored_entries(directory: str, names: list[str]) -> set[str]:
    """copytree ignore hook: excluded names and symlinks are never copied."""
    ignored = set()
    for name in names:
        if is_excluded(name):
            ignored.add(name)
        elif os.path.islink(os.path.join(directory, name)):
            logger.debug(f"Skipping symlink {name} in {directory}")
            ignored.add(name)
    return ignored


def copy_skill_tree(src: Path, dest: Path) -> None:
    """Recursively copy src into dest, skipping excluded entries and symlinks, overwriting files."""
    shutil.copytree(src, dest, ignore=_ignored_entries, dirs_exist_ok=True)


def install_skill(skill: Skill, target_base: Path) -> InstallResult:
    """
    Install a skill into target_base/<sanitized name>.

    Re-installing overwrites existing files in place.

    Args:
        skill: Discovered skill (content is read from skill.path)
        target_base: Directory that will hold the skill directory

    Returns:
        InstallResult; success=False carries the error, nothing is raised

    Example:
        >>> result = install_skill(skill, Path(".claude/skills"))
        >>> result.path
        '.claude/skills/release-notes'
    """
    raw_name = skill.name or skill.path.name
    target_dir = resolve_skill_dir(raw_name, target_base)

    if target_dir is None:
        logger.warning(f"Refusing to install {raw_name!r} into {target_base}: path traversal")
        return InstallResult(success=False, path=str(target_base), error=TRAVERSAL_ERROR)

    try:
        copy_skill_tree(skill.path, target_dir)
    except OSError as e:
        logger.debug(f"Install of {skill.name} into {target_dir} failed: {e}")
        return InstallResult(success=False, path=str(target_dir), error=str(e))

    logger.info(f"Installed {skill.name} to {target_dir}")
    return InstallResult(success=True, path=str(target_dir))


def is_skill_installed(skill_name: str, target_base: Path) -> bool:
    """Check whether a skill directory already exists under target_base."""
    target_dir = resolve_skill_dir(skill_name, target_base)
    return target_dir is not None and target_dir.exists()
