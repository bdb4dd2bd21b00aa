"""Source normalization - turn user input into a repository URL + subpath.

Accepted inputs, in match order:
- https://github.com/owner/repo/tree/<ref>/path/to/skill
- https://github.com/owner/repo
- https://gitlab.com/owner/repo/-/tree/<ref>/path/to/skill
- https://gitlab.com/owner/repo
- owner/repo or owner/repo/path/to/skill (no ":" anywhere)
- anything else, used verbatim as a git URL
"""

import re
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict

_GITHUB_TREE = re.compile(r"github\.com/([^/]+)/([^/]+)/tree/([^/]+)/(.+)")
_GITHUB_REPO = re.compile(r"github\.com/([^/]+)/([^/]+)")
_GITLAB_TREE = re.compile(r"gitlab\.com/([^/]+)/([^/]+)/-/tree/([^/]+)/(.+)")
_GITLAB_REPO = re.compile(r"gitlab\.com/([^/]+)/([^/]+)")
_SHORTHAND = re.compile(r"^([^/]+)/([^/]+)(?:/(.+))?$")


class SourceSpec(BaseModel):
    """Canonical repository location derived from a source string."""

    model_config = ConfigDict(frozen=True)

    url: str
    subpath: str | None = None
    host: Literal["github", "gitlab", "git"] = "git"


def _strip_git_suffix(repo: str) -> str:
    return repo[: -len(".git")] if repo.endswith(".git") else repo


def normalize_source(value: str) -> SourceSpec:
    """Normalize a source string. Never raises.

    Args:
        value: URL, shorthand ("owner/repo[/subpath]") or any git locator

    Returns:
        SourceSpec with a clone URL and optional subpath

    Example:
        >>> normalize_source("acme/tools/skills/release-notes")
        SourceSpec(url='https://github.com/acme/tools.git', subpath='skills/release-notes', host='github')
    """
    for host, tree_pattern, repo_pattern in (
        ("github", _GITHUB_TREE, _GITHUB_REPO),
        ("gitlab", _GITLAB_TREE, _GITLAB_REPO),
    ):
        match = tree_pattern.search(value)
        if match:
            owner, repo, _ref, subpath = match.groups()
            return SourceSpec(
                url=f"https://{host}.com/{owner}/{_strip_git_suffix(repo)}.git",
                subpath=subpath.strip("/") or None,
                host=host,
            )

        match = repo_pattern.search(value)
        if match:
            owner, repo = match.groups()
            return SourceSpec(url=f"https://{host}.com/{owner}/{_strip_git_suffix(repo)}.git", host=host)

    # Shorthand only when no scheme or scp-style ":" is present
    if ":" not in value:
        match = _SHORTHAND.match(value)
        if match:
            owner, repo, subpath = match.groups()
            return SourceSpec(url=f"https://github.com/{owner}/{repo}.git", subpath=subpath, host="github")

    return SourceSpec(url=value)
