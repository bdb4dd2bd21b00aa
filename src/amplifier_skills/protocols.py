"""Protocols for repository retrieval.

Per KERNEL_PHILOSOPHY: Protocol-based extensibility over configuration.
Per IMPLEMENTATION_PHILOSOPHY: Composition over inheritance.
"""

from pathlib import Path
from typing import Protocol


class RepositoryFetcher(Protocol):
    """Protocol for fetching repository content into a local directory.

    Apps can provide any implementation. The library ships GitFetcher
    (runs the git executable); tests use in-memory fakes.

    Every method reports failure through its return value rather than by
    raising, so the resolver can walk its candidate list.
    """

    def clone(self, url: str, dest: Path, ref: str | None = None) -> tuple[bool, str]:
        """Shallow clone `url` into empty directory `dest`.

        Args:
            url: Repository URL
            dest: Existing empty directory to clone into
            ref: Branch or tag to check out (None for the default branch)

        Returns:
            (success, output) where output is the error text on failure
        """
        ...

    def fetch_revision(self, url: str, dest: Path, revision: str) -> tuple[bool, str]:
        """Retrieve exactly `revision` (a commit id) of `url` into `dest`."""
        ...

    def head_revision(self, repo_dir: Path) -> str | None:
        """Commit id checked out in `repo_dir`, or None if unavailable."""
        ...
