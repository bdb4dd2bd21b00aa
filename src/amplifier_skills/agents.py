"""Agent registry - where each coding agent expects its skills.

A plain lookup table; detecting which agents are installed is app policy.
`global_dir` entries starting with "~/" are expanded against SkillsContext.home,
`project_dir` entries are relative to SkillsContext.cwd.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict

from .context import SkillsContext
from .exceptions import SkillInstallError
from .installer import TRAVERSAL_ERROR
from .installer import resolve_skill_dir
from .manifest import LOCATION_KEYWORDS
from .manifest import validate_location
from .utils import is_path_within

Scope = Literal["project", "global"]


class AgentPaths(BaseModel):
    """Install locations for one agent."""

    model_config = ConfigDict(frozen=True)

    display_name: str
    project_dir: str
    global_dir: str


AGENTS: dict[str, AgentPaths] = {
    "opencode": AgentPaths(
        display_name="OpenCode", project_dir=".opencode/skill", global_dir="~/.config/opencode/skill"
    ),
    "claude-code": AgentPaths(display_name="Claude Code", project_dir=".claude/skills", global_dir="~/.claude/skills"),
    "codex": AgentPaths(display_name="Codex", project_dir=".codex/skills", global_dir="~/.codex/skills"),
    "cursor": AgentPaths(display_name="Cursor", project_dir=".cursor/skills", global_dir="~/.cursor/skills"),
    "amp": AgentPaths(display_name="Amp", project_dir=".agents/skills", global_dir="~/.config/agents/skills"),
    "kilo": AgentPaths(display_name="Kilo Code", project_dir=".kilocode/skills", global_dir="~/.kilocode/skills"),
    "roo": AgentPaths(display_name="Roo Code", project_dir=".roo/skills", global_dir="~/.roo/skills"),
    "goose": AgentPaths(display_name="Goose", project_dir=".goose/skills", global_dir="~/.config/goose/skills"),
    "antigravity": AgentPaths(
        display_name="Antigravity", project_dir=".agent/skills", global_dir="~/.gemini/antigravity/skills"
    ),
}

DEFAULT_AGENT = "claude-code"


def get_agent(agent_id: str) -> AgentPaths:
    """
    Look up an agent by id.

    Raises:
        SkillInstallError: If the agent id is unknown
    """
    agent = AGENTS.get(agent_id)
    if agent is None:
        raise SkillInstallError(
            f"Unknown agent '{agent_id}'. Valid agents: {', '.join(AGENTS)}",
            context={"agent": agent_id},
        )
    return agent


def target_base(agent_id: str, scope: Scope, context: SkillsContext) -> Path:
    """Directory that holds an agent's skills for the given scope."""
    agent = get_agent(agent_id)

    if scope == "global":
        template = agent.global_dir
        if template.startswith("~/"):
            return context.home / template[2:]
        return Path(template)

    return context.cwd / agent.project_dir


def location_base(agent_id: str, location: str, context: SkillsContext) -> Path:
    """
    Directory that holds an agent's skills for a manifest location.

    "global" and "project" map to the scoped directories; any other value is a
    directory under context.cwd that receives the agent's project layout
    (location "docs" installs Claude Code skills to cwd/docs/.claude/skills).

    Raises:
        SkillInstallError: If the location is malformed or leaves context.cwd
    """
    if location in LOCATION_KEYWORDS:
        return target_base(agent_id, location, context)

    problem = validate_location(location)
    if problem:
        raise SkillInstallError(problem, context={"location": location})

    base = context.cwd / location / get_agent(agent_id).project_dir
    if not is_path_within(context.cwd, base):
        raise SkillInstallError(
            "Invalid location: path escapes current working directory",
            context={"location": location, "cwd": str(context.cwd)},
        )
    return base


def install_path(skill_name: str, agent_id: str, scope: Scope, context: SkillsContext) -> Path:
    """
    Full install path of a skill for an agent.

    Raises:
        SkillInstallError: If the skill name is a path traversal attempt
    """
    base = target_base(agent_id, scope, context)
    path = resolve_skill_dir(skill_name, base)
    if path is None:
        raise SkillInstallError(TRAVERSAL_ERROR, context={"skill": skill_name, "base": str(base)})
    return path
