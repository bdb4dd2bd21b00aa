"""Skill discovery - Convention over configuration.

Discovers skills (directories holding SKILL.md) inside a retrieved tree.

Per IMPLEMENTATION_PHILOSOPHY:
- Fast path: check the conventional skill directories first
- Correctness path: fall back to a bounded recursive walk for unusual layouts
"""

import logging
from pathlib import Path

from .schema import SKILL_FILE
from .schema import Skill
from .utils import is_path_within

logger = logging.getLogger(__name__)

# Searched in order; first skill seen with a given name wins.
PRIORITY_SEARCH_DIRS = (
    ".",
    "skills",
    "skills/.curated",
    "skills/.experimental",
    "skills/.system",
    ".codex/skills",
    ".claude/skills",
    ".opencode/skill",
    ".cursor/skills",
    ".agents/skills",
    ".kilocode/skills",
    ".roo/skills",
    ".goose/skills",
    ".agent/skills",
)

SKIP_DIRS = frozenset({".git", "node_modules", "dist", "build", "__pycache__"})

MAX_DEPTH = 5


def has_skill_md(directory: Path) -> bool:
    """Check whether a directory carries a SKILL.md file."""
    return (directory / SKILL_FILE).is_file()


def _child_dirs(directory: Path) -> list[Path]:
    """Immediate subdirectories sorted by name; missing or unreadable means none."""
    try:
        return sorted((p for p in directory.iterdir() if p.is_dir()), key=lambda p: p.name)
    except OSError:
        return []


def _load_skill(directory: Path) -> Skill | None:
    try:
        return Skill.from_skill_md(directory / SKILL_FILE)
    except Exception as e:
        logger.debug(f"Skipping {directory}: {e}")
        return None


def _find_skill_dirs(directory: Path, depth: int = 0) -> list[Path]:
    if depth > MAX_DEPTH:
        return []

    found = [directory] if has_skill_md(directory) else []
    for child in _child_dirs(directory):
        if child.name not in SKIP_DIRS:
            found.extend(_find_skill_dirs(child, depth + 1))
    return found


def discover_skills(root: Path, subpath: str | None = None) -> list[Skill]:
    """
    Discover skills in a directory tree.

    Search order:
    1. root/subpath itself, if it holds SKILL.md (returned alone); a subpath
       escaping root yields no skills
    2. Immediate children of each PRIORITY_SEARCH_DIRS entry
    3. Recursive walk (MAX_DEPTH levels) when step 2 found nothing

    Args:
        root: Root of the retrieved tree
        subpath: Optional subdirectory within root to search

    Returns:
        Skills in discovery order, unique by name (first occurrence wins)

    Example:
        >>> skills = discover_skills(Path("/tmp/skills-abc123"), "skills")
        >>> [s.name for s in skills]
        ['changelog', 'release-notes']
    """
    search_root = root / subpath if subpath else root

    if not is_path_within(root, search_root):
        logger.warning(f"Ignoring subpath {subpath!r}: it leaves {root}")
        return []

    if has_skill_md(search_root):
        skill = _load_skill(search_root)
        if skill is not None:
            return [skill]

    skills: list[Skill] = []
    seen: set[str] = set()

    def collect(directory: Path) -> None:
        skill = _load_skill(directory)
        if skill is not None and skill.name not in seen:
            skills.append(skill)
            seen.add(skill.name)

    for relative in PRIORITY_SEARCH_DIRS:
        for child in _child_dirs(search_root / relative):
            if has_skill_md(child):
                collect(child)

    if not skills:
        logger.debug(f"No skills in conventional locations under {search_root}, searching recursively")
        for directory in _find_skill_dirs(search_root):
            collect(directory)

    logger.debug(f"Discovered {len(skills)} skills under {search_root}")
    return skills


def list_skill_names(root: Path, subpath: str | None = None) -> list[str]:
    """
    List skill names in a tree (helper).

    Example:
        >>> list_skill_names(Path("/tmp/skills-abc123"))
        ['changelog', 'release-notes']
    """
    return [s.name for s in discover_skills(root, subpath)]


def skill_display_name(skill: Skill) -> str:
    """Name to show for a skill, falling back to its directory name."""
    return skill.name or skill.path.name
