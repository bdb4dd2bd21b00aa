"""Tests for source normalization."""

import pytest
from amplifier_skills import SourceSpec
from amplifier_skills import normalize_source


def test_shorthand_owner_repo():
    """Test owner/repo shorthand expands to a GitHub clone URL."""
    spec = normalize_source("acme/tools")

    assert spec.url == "https://github.com/acme/tools.git"
    assert spec.subpath is None
    assert spec.host == "github"


def test_shorthand_with_subpath():
    """Test owner/repo/a/b shorthand keeps the nested path."""
    spec = normalize_source("acme/tools/a/b")

    assert spec.url == "https://github.com/acme/tools.git"
    assert spec.subpath == "a/b"


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/acme/tools/tree/main/skills/release-notes",
        "https://gitlab.com/acme/tools/-/tree/main/skills/release-notes",
    ],
)
def test_tree_urls_extract_same_shape(url):
    """Test both hosts' browse-at-ref URLs yield owner, repo and subpath."""
    spec = normalize_source(url)

    assert spec.url.endswith("/acme/tools.git")
    assert spec.subpath == "skills/release-notes"


def test_github_and_gitlab_tree_urls_differ_only_by_host():
    github = normalize_source("https://github.com/acme/tools/tree/v1.0.0/skills/pdf")
    gitlab = normalize_source("https://gitlab.com/acme/tools/-/tree/v1.0.0/skills/pdf")

    assert github.url == "https://github.com/acme/tools.git"
    assert gitlab.url == "https://gitlab.com/acme/tools.git"
    assert github.subpath == gitlab.subpath == "skills/pdf"
    assert (github.host, gitlab.host) == ("github", "gitlab")


def test_bare_repository_urls():
    """Test plain repository URLs, with or without .git."""
    assert normalize_source("https://github.com/acme/tools") == SourceSpec(
        url="https://github.com/acme/tools.git", host="github"
    )
    assert normalize_source("https://github.com/acme/tools.git").url == "https://github.com/acme/tools.git"
    assert normalize_source("https://gitlab.com/acme/tools").url == "https://gitlab.com/acme/tools.git"


def test_tree_url_without_path_is_bare_repo():
    spec = normalize_source("https://github.com/acme/tools/tree/main")

    assert spec.url == "https://github.com/acme/tools.git"
    assert spec.subpath is None


@pytest.mark.parametrize(
    "value",
    [
        "git@example.com:acme/tools.git",
        "https://git.example.com/acme/tools.git",
        "ssh://git@example.com/acme/tools.git",
        "file:///srv/repos/tools",
        "C:/repos/tools",
    ],
)
def test_direct_locators_are_kept_verbatim(value):
    """Test inputs with a scheme or ":" are never treated as shorthand."""
    spec = normalize_source(value)

    assert spec.url == value
    assert spec.subpath is None
    assert spec.host == "git"


def test_unrecognized_input_never_raises():
    assert normalize_source("").url == ""
    assert normalize_source("just-a-name").url == "just-a-name"
