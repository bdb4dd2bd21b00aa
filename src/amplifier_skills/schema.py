"""Skill descriptor schema - Parse SKILL.md front matter.

A skill is a directory holding a SKILL.md file whose front matter carries:

    ---
    name: release-notes
    description: Draft release notes from merged pull requests
    version: 1.2.0          # optional
    metadata:               # optional, string values only
      owner: docs-team
    ---

Only name and description are required; every other key is ignored.
"""

from pathlib import Path
from typing import Literal

import frontmatter
from pydantic import BaseModel
from pydantic import ConfigDict

from .exceptions import SkillMetadataError

SKILL_FILE = "SKILL.md"


class SkillVersion(BaseModel):
    """Declared version of a skill and where it came from."""

    model_config = ConfigDict(frozen=True)

    value: str
    origin: Literal["descriptor", "tag", "none"] = "descriptor"


class Skill(BaseModel):
    """A discovered skill (immutable).

    `path` points into the retrieved tree; it is not an owned copy.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    path: Path
    version: SkillVersion | None = None
    metadata: dict[str, str] | None = None

    @classmethod
    def from_skill_md(cls, skill_md_path: Path) -> "Skill":
        """
        Load a skill from its SKILL.md descriptor.

        Args:
            skill_md_path: Path to SKILL.md file

        Returns:
            Skill rooted at the descriptor's directory

        Raises:
            SkillMetadataError: If the file is unreadable, the front matter is
                invalid, or name/description are missing
        """
        try:
            post = frontmatter.loads(skill_md_path.read_text(encoding="utf-8"))
        except Exception as e:
            raise SkillMetadataError(
                f"Could not parse {skill_md_path}: {e}", context={"path": str(skill_md_path)}
            ) from e

        data = post.metadata or {}
        name = data.get("name")
        description = data.get("description")

        if not isinstance(name, str) or not name.strip():
            raise SkillMetadataError(f"Missing 'name' in {skill_md_path}", context={"path": str(skill_md_path)})
        if not isinstance(description, str) or not description.strip():
            raise SkillMetadataError(
                f"Missing 'description' in {skill_md_path}", context={"path": str(skill_md_path)}
            )

        version = None
        declared = data.get("version")
        if isinstance(declared, str) and declared.strip():
            version = SkillVersion(value=declared.strip(), origin="descriptor")

        metadata = None
        extra = data.get("metadata")
        if isinstance(extra, dict) and all(isinstance(k, str) and isinstance(v, str) for k, v in extra.items()):
            metadata = dict(extra)

        return cls(
            name=name.strip(),
            description=description.strip(),
            path=skill_md_path.parent,
            version=version,
            metadata=metadata,
        )
