"""Skill lock file management.

Records, for every installed manifest entry, the concrete commit its source
resolved to, so a later frozen install reproduces the same content.

Per KERNEL_PHILOSOPHY: This is library mechanism - apps inject lock path (policy).

Lock format (TOML):

    lockVersion = 1

    [[skills]]
    source = "acme/tools"
    name = "release-notes"
    version = "latest"
    resolvedRef = "0f3c9e7d..."
    installedAt = "2025-10-26T12:00:00+00:00"
"""

import logging
import os
import tempfile
import tomllib
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from pathlib import Path

import tomli_w

from .exceptions import SkillError

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class SkillLockEntry:
    """Entry in skills lock file."""

    source: str
    name: str
    version: str
    resolved_ref: str
    installed_at: str

    def to_dict(self) -> dict:
        """Convert to dictionary for TOML serialization."""
        return {
            "source": self.source,
            "name": self.name,
            "version": self.version,
            "resolvedRef": self.resolved_ref,
            "installedAt": self.installed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SkillLockEntry":
        """Create from dictionary."""
        return cls(
            source=data["source"],
            name=data["name"],
            version=data["version"],
            resolved_ref=data["resolvedRef"],
            installed_at=data["installedAt"],
        )

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.name.casefold())


class SkillLock:
    """
    Skills lock file manager (with injected lock path).

    Entries keep manifest order and are looked up by (source, name), with
    the name compared case-insensitively.
    """

    VERSION = 1

    def __init__(self, lock_path: Path):
        """Initialize lock manager with app-provided lock path.

        Args:
            lock_path: Path to lock file (app determines location)

        Example:
            >>> lock = SkillLock(lock_path=Path("skills-lock.toml"))
        """
        self.lock_path = lock_path
        self._entries: list[SkillLockEntry] = []
        self._load()

    def _load(self) -> None:
        """Load lock file if it exists."""
        if not self.lock_path.exists():
            self._entries = []
            return

        try:
            with open(self.lock_path, "rb") as f:
                data = tomllib.load(f)

            lock_version = data.get("lockVersion")
            if not isinstance(lock_version, int):
                logger.warning(f"Ignoring lock file {self.lock_path}: missing lockVersion")
                self._entries = []
                return
            if lock_version != self.VERSION:
                logger.warning(f"Lock file version mismatch: expected {self.VERSION}, got {lock_version}")

            self._entries = [SkillLockEntry.from_dict(entry) for entry in data.get("skills", [])]
            logger.debug(f"Loaded {len(self._entries)} skills from lock file")

        except Exception as e:
            logger.error(f"Failed to load lock file {self.lock_path}: {e}")
            self._entries = []

    def save(self) -> None:
        """
        Write the lock file atomically (temp file + rename in the same directory).

        Raises:
            SkillError: If the file cannot be written
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "lockVersion": self.VERSION,
            "skills": [entry.to_dict() for entry in self._entries],
        }

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.lock_path.name}.", dir=self.lock_path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                tomli_w.dump(data, f)
            os.replace(tmp_name, self.lock_path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise SkillError(
                f"Failed to write lock file {self.lock_path}: {e}", context={"path": str(self.lock_path)}
            ) from e

        logger.debug(f"Saved lock file with {len(self._entries)} skills")

    def replace_entries(self, entries: list[SkillLockEntry]) -> None:
        """Replace all entries (in memory; call save() to persist)."""
        self._entries = list(entries)

    def add_entry(
        self,
        source: str,
        name: str,
        version: str,
        resolved_ref: str,
    ) -> SkillLockEntry:
        """
        Add or update a skill in the lock (in memory).

        Args:
            source: Manifest source string
            name: Skill name
            version: Requested or declared version ("latest" if neither)
            resolved_ref: Concrete commit id

        Returns:
            The stored entry
        """
        entry = SkillLockEntry(
            source=source,
            name=name,
            version=version,
            resolved_ref=resolved_ref,
            installed_at=utc_timestamp(),
        )

        for i, existing in enumerate(self._entries):
            if existing.key == entry.key:
                self._entries[i] = entry
                break
        else:
            self._entries.append(entry)

        logger.debug(f"Added {name} to lock file")
        return entry

    def get_entry(self, source: str, name: str) -> SkillLockEntry | None:
        """
        Get lock entry for a skill.

        Args:
            source: Manifest source string (exact match)
            name: Skill name (case-insensitive)

        Returns:
            Lock entry or None if not found
        """
        key = (source, name.casefold())
        return next((entry for entry in self._entries if entry.key == key), None)

    def list_entries(self) -> list[SkillLockEntry]:
        """
        List all locked skills in order.

        Returns:
            List of lock entries
        """
        return list(self._entries)
