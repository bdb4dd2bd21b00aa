"""Shared fixtures: a fake repository fetcher and SKILL.md helpers."""

import shutil
from pathlib import Path

import pytest
from amplifier_skills import SkillsContext


def write_skill(directory: Path, name: str, description: str = "Test skill", version: str | None = None) -> Path:
    """Create directory/SKILL.md with front matter."""
    directory.mkdir(parents=True, exist_ok=True)
    lines = ["---", f"name: {name}", f'description: "{description}"']
    if version is not None:
        lines.append(f'version: "{version}"')
    lines += ["---", "", f"# {name}", ""]
    (directory / "SKILL.md").write_text("\n".join(lines))
    return directory


class FakeFetcher:
    """In-memory RepositoryFetcher: refs map to (tree, commit) pairs on disk."""

    def __init__(self):
        self.repos: dict[str, dict[str | None, tuple[Path, str]]] = {}
        self.calls: list[tuple[str, str, str | None]] = []
        self._heads: dict[Path, str] = {}

    def add_ref(self, url: str, ref: str | None, tree: Path, commit: str) -> None:
        """Register tree as the content of url at ref (None = default branch)."""
        self.repos.setdefault(url, {})[ref] = (tree, commit)

    def clone(self, url: str, dest: Path, ref: str | None = None) -> tuple[bool, str]:
        self.calls.append(("clone", url, ref))
        refs = self.repos.get(url)
        if refs is None:
            return False, f"repository '{url}' not found"
        if ref not in refs:
            return False, f"Remote branch {ref} not found in upstream origin"
        tree, commit = refs[ref]
        shutil.copytree(tree, dest, dirs_exist_ok=True)
        self._heads[dest] = commit
        return True, ""

    def fetch_revision(self, url: str, dest: Path, revision: str) -> tuple[bool, str]:
        self.calls.append(("fetch", url, revision))
        for tree, commit in self.repos.get(url, {}).values():
            if commit == revision:
                shutil.copytree(tree, dest, dirs_exist_ok=True)
                self._heads[dest] = commit
                return True, ""
        return False, f"couldn't find remote ref {revision}"

    def head_revision(self, repo_dir: Path) -> str | None:
        return self._heads.get(repo_dir)


@pytest.fixture
def context(tmp_path):
    """Run context rooted entirely inside tmp_path."""
    cwd = tmp_path / "project"
    cwd.mkdir()
    return SkillsContext(cwd=cwd, home=tmp_path / "home", temp_root=tmp_path / "ephemeral")


@pytest.fixture
def fetcher():
    return FakeFetcher()
