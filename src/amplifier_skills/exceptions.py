"""Skill-specific exceptions.

Per IMPLEMENTATION_PHILOSOPHY: Clear, actionable error messages.
"""


class SkillError(Exception):
    """Base exception for skill operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (file paths, sources, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class SkillManifestError(SkillError):
    """Manifest file is unreadable or one of its entries is malformed."""

    def __init__(self, message: str, path: str | None = None, index: int | None = None):
        context: dict = {}
        if path is not None:
            context["path"] = path
        if index is not None:
            context["index"] = index
        super().__init__(message, context=context)
        self.path = path
        self.index = index


class SkillResolutionError(SkillError):
    """Repository could not be retrieved for a retrieval group."""


class SkillNotFoundError(SkillError):
    """Requested skill is not among the skills discovered in its source."""

    def __init__(self, skill_name: str, source: str, available: list[str]):
        listed = ", ".join(available) or "none"
        super().__init__(
            f'Skill "{skill_name}" not found in {source}. Available: {listed}',
            context={"skill_name": skill_name, "source": source, "available": available},
        )
        self.skill_name = skill_name
        self.source = source
        self.available = available


class SkillInstallError(SkillError):
    """Skill installation could not be set up."""


class SkillMetadataError(SkillError):
    """Invalid or missing SKILL.md descriptor."""
