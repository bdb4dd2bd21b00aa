"""Revision resolution - fetch a repository at a reproducible commit.

Tag lookup for a requested version walks an explicit candidate list
(v<version>, then <version>) and degrades to the default branch when no
candidate exists. The outcome is a tagged result, never an exception.

Per KERNEL_PHILOSOPHY: The temp root comes from SkillsContext, not the process.
"""

import logging
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict

from .context import SkillsContext
from .exceptions import SkillError
from .protocols import RepositoryFetcher
from .utils import is_path_within

logger = logging.getLogger(__name__)

TEMP_DIR_PREFIX = "skills-"

_COMMIT_ID = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")


def is_commit_id(value: str) -> bool:
    """True for a full hex commit id (SHA-1 or SHA-256)."""
    return bool(_COMMIT_ID.match(value))


class GitFetcher:
    """RepositoryFetcher backed by the git executable."""

    def __init__(self, executable: str = "git", timeout: float | None = 300.0):
        self.executable = executable
        self.timeout = timeout

    @classmethod
    def from_context(cls, context: SkillsContext) -> "GitFetcher":
        return cls(executable=context.git_executable, timeout=context.git_timeout)

    def _run_git(self, *args: str, cwd: Path | None = None) -> tuple[bool, str]:
        """Run a git command."""
        cmd = [self.executable, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return False, f"git {args[0]} timed out after {self.timeout}s"
        except OSError as e:
            return False, f"Could not run {self.executable}: {e}"

        if result.returncode != 0:
            return False, result.stderr.strip() or result.stdout.strip()
        return True, result.stdout

    def clone(self, url: str, dest: Path, ref: str | None = None) -> tuple[bool, str]:
        args = ["clone", "--depth", "1"]
        if ref:
            args.extend(["--branch", ref])
        args.extend([url, str(dest)])
        return self._run_git(*args)

    def fetch_revision(self, url: str, dest: Path, revision: str) -> tuple[bool, str]:
        for args in (
            ("init", "--quiet"),
            ("fetch", "--depth", "1", url, revision),
            ("checkout", "--quiet", "--detach", "FETCH_HEAD"),
        ):
            ok, output = self._run_git(*args, cwd=dest)
            if not ok:
                return False, output
        return True, ""

    def head_revision(self, repo_dir: Path) -> str | None:
        ok, output = self._run_git("rev-parse", "HEAD", cwd=repo_dir)
        return output.strip() if ok else None

    def list_remote_tags(self, url: str) -> list[str]:
        """
        List tag names of a remote repository.

        Returns:
            Tag names without peeled (^{}) duplicates; empty list if the
            remote cannot be queried
        """
        ok, output = self._run_git("ls-remote", "--tags", url)
        if not ok:
            logger.debug(f"Could not list tags for {url}: {output}")
            return []

        tags = []
        for line in output.splitlines():
            _, _, ref = line.partition("\t")
            if ref.startswith("refs/tags/") and not ref.endswith("^{}"):
                tags.append(ref[len("refs/tags/") :])
        return tags


class ResolvedRevision(BaseModel):
    """Repository content fetched at a concrete commit."""

    model_config = ConfigDict(frozen=True)

    status: Literal["resolved"] = "resolved"
    content_root: Path
    revision: str
    ref: str | None = None
    version_honored: bool = True


class ResolutionFailure(BaseModel):
    """Repository could not be fetched at all."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    url: str
    error: str
    attempted: list[str]


RevisionResult = ResolvedRevision | ResolutionFailure


def version_candidates(version: str | None) -> list[str | None]:
    """
    Ordered refs to try for a requested version; None means the default branch.

    Example:
        >>> version_candidates("1.2.0")
        ['v1.2.0', '1.2.0', None]
        >>> version_candidates(None)
        [None]
    """
    if not version or version == "latest":
        return [None]
    return [f"v{version}", version, None]


def make_ephemeral_dir(context: SkillsContext) -> Path:
    """Create a uniquely named empty directory under context.temp_root."""
    context.temp_root.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=context.temp_root))


def cleanup_ephemeral_dir(path: Path, temp_root: Path) -> None:
    """
    Remove an ephemeral directory created by this module.

    Raises:
        SkillError: If path is not strictly inside temp_root
    """
    if not is_path_within(temp_root, path) or Path(path).resolve() == Path(temp_root).resolve():
        raise SkillError(
            f"Refusing to delete {path}: not inside temp root {temp_root}",
            context={"path": str(path), "temp_root": str(temp_root)},
        )
    shutil.rmtree(path)
    logger.debug(f"Removed {path}")


def _discard(path: Path, context: SkillsContext) -> None:
    try:
        cleanup_ephemeral_dir(path, context.temp_root)
    except Exception as e:
        logger.warning(f"Could not clean up {path}: {e}")


def resolve_revision(
    url: str,
    version: str | None,
    *,
    fetcher: RepositoryFetcher,
    context: SkillsContext,
) -> RevisionResult:
    """
    Fetch `url` at the commit a version resolves to.

    Each candidate from version_candidates() is cloned into its own fresh
    directory; the first success wins. The revision reported is always the
    commit id, never the tag used to find it. Reaching the default branch
    after a requested version sets version_honored=False.

    Args:
        url: Repository URL
        version: Requested version, "latest", or None
        fetcher: Repository fetcher (GitFetcher in production)
        context: Run context providing temp_root

    Returns:
        ResolvedRevision (caller owns content_root cleanup) or ResolutionFailure
    """
    attempted: list[str] = []
    error = ""
    requested = version is not None and version != "latest"

    for ref in version_candidates(version):
        label = ref or "default branch"
        attempted.append(label)
        dest = make_ephemeral_dir(context)

        ok, output = fetcher.clone(url, dest, ref)
        if not ok:
            logger.debug(f"Clone of {url} at {label} failed: {output}")
            error = output
            _discard(dest, context)
            continue

        revision = fetcher.head_revision(dest)
        if revision is None or not is_commit_id(revision):
            error = f"Could not determine commit for {url} at {label} (got {revision!r})"
            _discard(dest, context)
            continue

        if ref is None and requested:
            logger.info(f"Version {version} of {url} not found as a tag, using default branch ({revision[:7]})")
        else:
            logger.debug(f"Resolved {url} at {label} to {revision}")

        return ResolvedRevision(
            content_root=dest,
            revision=revision,
            ref=ref,
            version_honored=not (requested and ref is None),
        )

    return ResolutionFailure(url=url, error=error or "clone failed", attempted=attempted)


def fetch_at_revision(
    url: str,
    revision: str,
    *,
    fetcher: RepositoryFetcher,
    context: SkillsContext,
) -> RevisionResult:
    """Fetch `url` at an exact, previously locked commit id."""
    dest = make_ephemeral_dir(context)
    ok, output = fetcher.fetch_revision(url, dest, revision)
    if not ok:
        _discard(dest, context)
        return ResolutionFailure(url=url, error=output or "fetch failed", attempted=[revision])

    head = fetcher.head_revision(dest)
    if head != revision:
        _discard(dest, context)
        return ResolutionFailure(url=url, error=f"Fetched {head!r}, expected {revision}", attempted=[revision])
    return ResolvedRevision(content_root=dest, revision=revision, ref=revision)
