"""Tests for the manifest and single-source install pipelines."""

import tomllib

import pytest
from amplifier_skills import SkillError
from amplifier_skills import SkillInstallError
from amplifier_skills import SkillLock
from amplifier_skills import SkillNotFoundError
from amplifier_skills import install_from_manifest
from amplifier_skills import install_from_source
from amplifier_skills import list_source_skills
from conftest import write_skill

TOOLS = "https://github.com/acme/tools.git"
MAIN_SHA = "1" * 40
NEW_SHA = "9" * 40

MANIFEST = """
[[skills]]
source = "acme/tools"
name = "release-notes"
"""


@pytest.fixture
def tools_tree(tmp_path):
    root = tmp_path / "remote"
    write_skill(root / "skills" / "release-notes", "release-notes")
    write_skill(root / "skills" / "changelog", "changelog")
    (root / "skills" / "release-notes" / "README.md").write_text("not installed")
    return root


@pytest.fixture
def manifest_path(context):
    path = context.cwd / "skills.toml"
    path.write_text(MANIFEST)
    return path


def test_manifest_install_end_to_end(fetcher, context, tools_tree, manifest_path):
    """Test one lock entry and one successful install per target agent."""
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)

    report = install_from_manifest(
        manifest_path, agents=["claude-code", "codex"], context=context, fetcher=fetcher
    )

    assert len(report.records) == 2
    assert report.failed == []
    assert (context.cwd / ".claude" / "skills" / "release-notes" / "SKILL.md").exists()
    assert (context.cwd / ".codex" / "skills" / "release-notes" / "SKILL.md").exists()
    assert not (context.cwd / ".claude" / "skills" / "release-notes" / "README.md").exists()

    assert report.lock_path == context.cwd / "skills-lock.toml"
    with open(report.lock_path, "rb") as f:
        data = tomllib.load(f)
    assert data["lockVersion"] == 1
    assert data["skills"] == [
        {
            "source": "acme/tools",
            "name": "release-notes",
            "version": "latest",
            "resolvedRef": MAIN_SHA,
            "installedAt": data["skills"][0]["installedAt"],
        }
    ]
    assert list(context.temp_root.iterdir()) == []


def test_global_scope_installs_under_home(fetcher, context, tools_tree, manifest_path):
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)

    install_from_manifest(manifest_path, agents=["claude-code"], scope="global", context=context, fetcher=fetcher)

    assert (context.home / ".claude" / "skills" / "release-notes" / "SKILL.md").exists()


def test_entry_locations_override_scope(fetcher, context, tools_tree):
    """Test an entry's locations replace the default scope, one record per location and agent."""
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)
    path = context.cwd / "skills.toml"
    path.write_text(
        MANIFEST + 'locations = ["project", "docs"]\n\n[[skills]]\nsource = "acme/tools"\nname = "changelog"\n'
    )

    report = install_from_manifest(path, agents=["claude-code"], scope="global", context=context, fetcher=fetcher)

    assert [(r.skill, r.location) for r in report.records] == [
        ("release-notes", "project"),
        ("release-notes", "docs"),
        ("changelog", None),
    ]
    assert not report.failed
    assert (context.cwd / ".claude" / "skills" / "release-notes" / "SKILL.md").exists()
    assert (context.cwd / "docs" / ".claude" / "skills" / "release-notes" / "SKILL.md").exists()
    assert not (context.home / ".claude" / "skills" / "release-notes").exists()
    assert (context.home / ".claude" / "skills" / "changelog" / "SKILL.md").exists()


def test_no_lock_option(fetcher, context, tools_tree, manifest_path):
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)

    report = install_from_manifest(
        manifest_path, agents=["claude-code"], context=context, fetcher=fetcher, write_lock=False
    )

    assert report.lock_path is None
    assert not (context.cwd / "skills-lock.toml").exists()


def test_fatal_error_writes_no_lock(fetcher, context, tools_tree):
    """Test a missing skill aborts before any install or lock write."""
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)
    manifest = context.cwd / "skills.toml"
    manifest.write_text(MANIFEST + '\n[[skills]]\nsource = "acme/tools"\nname = "nonexistent"\n')

    with pytest.raises(SkillNotFoundError) as exc_info:
        install_from_manifest(manifest, agents=["claude-code"], context=context, fetcher=fetcher)

    assert exc_info.value.available == ["changelog", "release-notes"]
    assert not (context.cwd / "skills-lock.toml").exists()
    assert not (context.cwd / ".claude").exists()


def test_unknown_agent_fails_before_fetching(fetcher, context, manifest_path):
    with pytest.raises(SkillInstallError, match="Unknown agent"):
        install_from_manifest(manifest_path, agents=["notepad"], context=context, fetcher=fetcher)

    assert fetcher.calls == []


def test_frozen_install_reproduces_locked_commit(fetcher, context, tools_tree, manifest_path, tmp_path):
    """Test a frozen run ignores the moved default branch and reuses the lock."""
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)
    install_from_manifest(manifest_path, agents=["claude-code"], context=context, fetcher=fetcher)

    moved = tmp_path / "moved"
    write_skill(moved / "skills" / "release-notes", "release-notes", description="newer")
    fetcher.add_ref(TOOLS, None, moved, NEW_SHA)
    fetcher.add_ref(TOOLS, "previous", tools_tree, MAIN_SHA)
    fetcher.calls.clear()

    report = install_from_manifest(manifest_path, agents=["claude-code"], context=context, fetcher=fetcher, frozen=True)

    assert report.failed == []
    assert fetcher.calls == [("fetch", TOOLS, MAIN_SHA)]
    lock = SkillLock(lock_path=context.cwd / "skills-lock.toml")
    assert lock.get_entry("acme/tools", "release-notes").resolved_ref == MAIN_SHA


def test_per_target_failure_does_not_stop_siblings(fetcher, context, tools_tree, manifest_path):
    """Test one blocked target reports failure while others still install."""
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)
    (context.cwd / ".codex").write_text("a file where a directory should be")

    report = install_from_manifest(
        manifest_path, agents=["codex", "claude-code"], context=context, fetcher=fetcher
    )

    assert [r.agent for r in report.failed] == ["codex"]
    assert [r.agent for r in report.succeeded] == ["claude-code"]


def test_install_from_source_selected_skills(fetcher, context, tools_tree):
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)

    report = install_from_source(
        "acme/tools", agents=["cursor"], skill_names=["CHANGELOG"], context=context, fetcher=fetcher
    )

    assert [r.skill for r in report.records] == ["changelog"]
    assert (context.cwd / ".cursor" / "skills" / "changelog" / "SKILL.md").exists()
    assert not (context.cwd / ".cursor" / "skills" / "release-notes").exists()
    assert list(context.temp_root.iterdir()) == []


def test_install_from_source_all_skills(fetcher, context, tools_tree):
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)

    report = install_from_source("acme/tools", agents=["claude-code"], context=context, fetcher=fetcher)

    assert sorted(r.skill for r in report.succeeded) == ["changelog", "release-notes"]


def test_install_from_source_unknown_skill(fetcher, context, tools_tree):
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)

    with pytest.raises(SkillNotFoundError):
        install_from_source(
            "acme/tools", agents=["claude-code"], skill_names=["nope"], context=context, fetcher=fetcher
        )

    assert list(context.temp_root.iterdir()) == []


def test_install_from_source_without_skills(fetcher, context, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    fetcher.add_ref(TOOLS, None, empty, MAIN_SHA)

    with pytest.raises(SkillError, match="No valid skills found"):
        install_from_source("acme/tools", agents=["claude-code"], context=context, fetcher=fetcher)


def test_list_source_skills(fetcher, context, tools_tree):
    fetcher.add_ref(TOOLS, None, tools_tree, MAIN_SHA)

    skills = list_source_skills("https://github.com/acme/tools", context=context, fetcher=fetcher)

    assert [s.name for s in skills] == ["changelog", "release-notes"]
    assert list(context.temp_root.iterdir()) == []
