"""Run context - explicit configuration threaded through every component.

Per KERNEL_PHILOSOPHY: Paths are app policy. Nothing below reads the process
working directory or the temp root directly; apps build a SkillsContext and
pass it in.
"""

import tempfile
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict


class SkillsContext(BaseModel):
    """Paths and git settings for a single run."""

    model_config = ConfigDict(frozen=True)

    cwd: Path
    home: Path
    temp_root: Path
    git_executable: str = "git"
    git_timeout: float | None = 300.0

    @classmethod
    def from_environment(cls, cwd: Path | None = None, **overrides) -> "SkillsContext":
        """Build a context from the current process environment.

        Args:
            cwd: Working directory override (defaults to Path.cwd())
            **overrides: Any other field (home, temp_root, git_executable, git_timeout)

        Example:
            >>> context = SkillsContext.from_environment()
            >>> context.temp_root
            PosixPath('/tmp')
        """
        values = {
            "cwd": (cwd or Path.cwd()).resolve(),
            "home": Path.home(),
            "temp_root": Path(tempfile.gettempdir()).resolve(),
        }
        values.update(overrides)
        return cls(**values)
