"""Tests for skill discovery."""

import tempfile
from pathlib import Path

from amplifier_skills import discover_skills
from amplifier_skills import list_skill_names
from amplifier_skills import skill_display_name
from conftest import write_skill


def test_discover_empty_tree():
    """Test discovering skills in an empty directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        assert discover_skills(Path(tmpdir)) == []


def test_missing_root_yields_nothing():
    """Test a nonexistent search root is treated as zero skills, not an error."""
    with tempfile.TemporaryDirectory() as tmpdir:
        assert discover_skills(Path(tmpdir), "does/not/exist") == []


def test_subpath_escaping_root_yields_nothing():
    """Test a subpath climbing out of the retrieved tree finds no skills."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "clone"
        write_skill(root / "skills" / "pdf", "pdf")
        write_skill(Path(tmpdir) / "outside" / "skills" / "stolen", "stolen")
        write_skill(Path(tmpdir) / "pointer", "pointer")

        assert discover_skills(root, "../outside") == []
        assert discover_skills(root, "skills/../../pointer") == []
        assert [s.name for s in discover_skills(root, "skills/../skills")] == ["pdf"]


def test_direct_pointer_short_circuits():
    """Test a subpath pointing at a skill returns only that skill."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / "skills" / "pdf", "pdf")
        write_skill(root / "skills" / "pdf" / "nested", "nested")
        write_skill(root / "skills" / "docx", "docx")

        skills = discover_skills(root, "skills/pdf")

        assert [s.name for s in skills] == ["pdf"]
        assert skills[0].path == root / "skills" / "pdf"


def test_priority_locations():
    """Test skills are collected from root children, skills/ and agent dirs in order."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / ".claude" / "skills" / "from-claude", "from-claude")
        write_skill(root / "skills" / "beta", "beta")
        write_skill(root / "skills" / "alpha", "alpha")
        write_skill(root / "skills" / ".curated" / "curated", "curated")
        write_skill(root / "top-level", "top-level")

        names = list_skill_names(root)

        assert names == ["top-level", "alpha", "beta", "curated", "from-claude"]


def test_dedup_first_priority_location_wins():
    """Test a name seen in an earlier location hides later duplicates."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / "skills" / "pdf", "pdf", description="from skills/")
        write_skill(root / ".codex" / "skills" / "pdf", "pdf", description="from .codex/")

        skills = discover_skills(root)

        assert len(skills) == 1
        assert skills[0].description == "from skills/"


def test_invalid_descriptor_is_skipped():
    """Test directories with a broken SKILL.md are silently excluded."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / "skills" / "good", "good")
        broken = root / "skills" / "broken"
        broken.mkdir(parents=True)
        (broken / "SKILL.md").write_text("---\nname: broken\n---\n")

        assert list_skill_names(root) == ["good"]


def test_recursive_fallback_for_unconventional_layout():
    """Test deep layouts are found by the recursive walk."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / "packages" / "writing" / "tools" / "changelog", "changelog")
        write_skill(root / "packages" / "data" / "csv", "csv")

        assert list_skill_names(root) == ["csv", "changelog"]


def test_recursive_fallback_skips_vendor_dirs_and_depth():
    """Test .git/node_modules are skipped and the walk stops below depth 5."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / "node_modules" / "pkg" / "vendored", "vendored")
        write_skill(root / ".git" / "hooks" / "x", "in-git")
        write_skill(root / "a" / "b" / "c" / "d" / "e", "depth-five")
        write_skill(root / "a" / "b" / "c" / "d" / "e" / "f", "depth-six")

        assert list_skill_names(root) == ["depth-five"]


def test_recursive_fallback_not_used_when_priority_hits():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / "skills" / "pdf", "pdf")
        write_skill(root / "deep" / "down" / "hidden", "hidden")

        assert list_skill_names(root) == ["pdf"]


def test_discovery_is_deterministic():
    """Test two passes over the same tree return identical results."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        for name in ["zeta", "alpha", "mu"]:
            write_skill(root / "skills" / name, name, version="1.0.0")

        assert discover_skills(root) == discover_skills(root)


def test_skill_display_name():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        write_skill(root / "skills" / "dir-name", "declared-name")

        skill = discover_skills(root)[0]

        assert skill_display_name(skill) == "declared-name"
