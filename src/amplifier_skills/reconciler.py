"""Manifest reconciliation - match manifest entries to discovered skills.

Process per retrieval group (entries sharing source + version):
1. Resolve the source to a concrete commit (one fetch per group)
2. Discover skills in the fetched tree (once per group)
3. Match each entry by case-insensitive name, checking declared versions
4. Emit one lock entry per matched entry

Per IMPLEMENTATION_PHILOSOPHY:
- Missing skills and failed fetches abort the whole run
- Version disagreements are warnings; the fetched ref already pins content
"""

import logging
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .context import SkillsContext
from .discovery import discover_skills
from .exceptions import SkillNotFoundError
from .exceptions import SkillResolutionError
from .git import GitFetcher
from .git import ResolutionFailure
from .git import ResolvedRevision
from .git import cleanup_ephemeral_dir
from .git import fetch_at_revision
from .git import is_commit_id
from .git import resolve_revision
from .lock import SkillLock
from .lock import SkillLockEntry
from .lock import utc_timestamp
from .manifest import ManifestEntry
from .manifest import RetrievalGroup
from .manifest import group_entries
from .manifest import validate_manifest
from .protocols import RepositoryFetcher
from .schema import Skill
from .source import normalize_source

logger = logging.getLogger(__name__)


class VersionValidation(BaseModel):
    """Result of comparing a requested version with a skill's declared one."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    actual: str | None = None
    message: str | None = None


def validate_skill_version(skill: Skill, requested_version: str) -> VersionValidation:
    """
    Compare a requested version against the version a skill declares.

    Unversioned skills are accepted with a message; mismatches are reported
    as invalid with a message. Neither case blocks installation.
    """
    actual = skill.version.value if skill.version else None

    if actual is None:
        return VersionValidation(
            valid=True,
            message=f'Skill "{skill.name}" has no version in SKILL.md. Installing from repository tag/branch.',
        )

    if actual == requested_version:
        return VersionValidation(valid=True, actual=actual)

    return VersionValidation(
        valid=False,
        actual=actual,
        message=f'Version mismatch for "{skill.name}": requested {requested_version}, found {actual}',
    )


class ResolvedSkill(BaseModel):
    """A manifest entry paired with the skill that satisfies it."""

    model_config = ConfigDict(frozen=True)

    entry: ManifestEntry
    skill: Skill
    resolved_ref: str


class Reconciliation(BaseModel):
    """Outcome of reconciling a manifest."""

    skills: list[ResolvedSkill]
    lock_entries: list[SkillLockEntry]
    warnings: list[str]
    fetch_count: int


class SkillReconciler:
    """
    Reconcile manifest entries against skills discovered in their sources.

    Fetched trees live in ephemeral directories that the reconciler owns; the
    skills it returns point into them, so install before leaving the
    context manager.

    Example:
        >>> with SkillReconciler(context) as reconciler:
        ...     result = reconciler.reconcile(entries)
        ...     for resolved in result.skills:
        ...         install_skill(resolved.skill, target)
    """

    def __init__(self, context: SkillsContext, fetcher: RepositoryFetcher | None = None):
        self.context = context
        self.fetcher = fetcher or GitFetcher.from_context(context)
        self._content_roots: list[Path] = []

    def __enter__(self) -> "SkillReconciler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        """Remove every fetched tree. Failures are logged, never raised."""
        while self._content_roots:
            path = self._content_roots.pop()
            try:
                cleanup_ephemeral_dir(path, self.context.temp_root)
            except Exception as e:
                logger.warning(f"Could not clean up {path}: {e}")

    def _track(self, result: ResolvedRevision | ResolutionFailure, source: str, label: str) -> ResolvedRevision:
        if isinstance(result, ResolutionFailure):
            raise SkillResolutionError(
                f"Failed to retrieve {source} ({label}): {result.error}",
                context={"source": source, "url": result.url, "attempted": result.attempted},
            )
        self._content_roots.append(result.content_root)
        return result

    def _match_group(
        self,
        source: str,
        entries: list[ManifestEntry],
        resolved: ResolvedRevision,
        warnings: list[str],
        locked: dict[ManifestEntry, SkillLockEntry] | None = None,
    ) -> tuple[list[ResolvedSkill], list[SkillLockEntry]]:
        source_spec = normalize_source(source)
        discovered = discover_skills(resolved.content_root, source_spec.subpath)
        by_name = {}
        for skill in discovered:
            by_name.setdefault(skill.name.casefold(), skill)

        matched: list[ResolvedSkill] = []
        lock_entries: list[SkillLockEntry] = []

        for entry in entries:
            skill = by_name.get(entry.name.casefold())
            if skill is None:
                raise SkillNotFoundError(entry.name, entry.source, [s.name for s in discovered])

            if entry.version:
                validation = validate_skill_version(skill, entry.version)
                if validation.message:
                    logger.warning(validation.message)
                    warnings.append(validation.message)

            previous = locked.get(entry) if locked else None
            if previous is not None:
                version = previous.version
            else:
                version = entry.version or (skill.version.value if skill.version else None) or "latest"

            matched.append(ResolvedSkill(entry=entry, skill=skill, resolved_ref=resolved.revision))
            lock_entries.append(
                SkillLockEntry(
                    source=entry.source,
                    name=entry.name,
                    version=version,
                    resolved_ref=resolved.revision,
                    installed_at=utc_timestamp(),
                )
            )

        return matched, lock_entries

    def _resolve_group(self, group: RetrievalGroup, warnings: list[str]) -> ResolvedRevision:
        source_spec = normalize_source(group.source)
        label = f"@ {group.version}" if group.version else "default branch"
        logger.info(f"Fetching {group.source} {label}")

        result = resolve_revision(source_spec.url, group.version, fetcher=self.fetcher, context=self.context)
        resolved = self._track(result, group.source, label)

        if not resolved.version_honored:
            message = (
                f"Version {group.version} not found for {group.source}; "
                f"installed default branch at {resolved.revision[:7]}"
            )
            logger.warning(message)
            warnings.append(message)
        return resolved

    def reconcile(self, entries: list[ManifestEntry]) -> Reconciliation:
        """
        Resolve every manifest entry to a skill at a concrete revision.

        Args:
            entries: Manifest entries (validated here)

        Returns:
            Reconciliation with matched skills, lock entries and warnings

        Raises:
            SkillManifestError: If the manifest is invalid
            SkillResolutionError: If a group's repository cannot be fetched
            SkillNotFoundError: If a requested skill is not in its source
        """
        validate_manifest(entries)

        groups = group_entries(entries)
        logger.info(f"Reconciling {len(entries)} skills from {len(groups)} retrieval groups")

        skills: list[ResolvedSkill] = []
        lock_entries: list[SkillLockEntry] = []
        warnings: list[str] = []

        for group in groups:
            resolved = self._resolve_group(group, warnings)
            matched, group_locks = self._match_group(group.source, group.entries, resolved, warnings)
            skills.extend(matched)
            lock_entries.extend(group_locks)

        return Reconciliation(skills=skills, lock_entries=lock_entries, warnings=warnings, fetch_count=len(groups))

    def reconcile_frozen(self, entries: list[ManifestEntry], lock: SkillLock) -> Reconciliation:
        """
        Reproduce a previous install from its lock file.

        Entries present in the lock are fetched at their recorded commit,
        grouped by (source, commit). Entries missing from the lock are resolved
        normally and reported in the warnings.

        Raises:
            SkillManifestError, SkillResolutionError, SkillNotFoundError: As reconcile()
        """
        validate_manifest(entries)

        pinned: dict[tuple[str, str], list[ManifestEntry]] = {}
        locked: dict[ManifestEntry, SkillLockEntry] = {}
        unlocked: list[ManifestEntry] = []
        warnings: list[str] = []

        for entry in entries:
            lock_entry = lock.get_entry(entry.source, entry.name)
            if lock_entry is None or not is_commit_id(lock_entry.resolved_ref):
                message = f'Skill "{entry.name}" from {entry.source} has no locked commit; resolving it'
                logger.warning(message)
                warnings.append(message)
                unlocked.append(entry)
                continue
            locked[entry] = lock_entry
            pinned.setdefault((entry.source, lock_entry.resolved_ref), []).append(entry)

        skills: list[ResolvedSkill] = []
        lock_entries: list[SkillLockEntry] = []

        for (source, revision), members in pinned.items():
            source_spec = normalize_source(source)
            logger.info(f"Fetching {source} @ {revision[:7]} (locked)")
            result = fetch_at_revision(source_spec.url, revision, fetcher=self.fetcher, context=self.context)
            resolved = self._track(result, source, f"locked {revision[:7]}")
            matched, entries_locked = self._match_group(source, members, resolved, warnings, locked)
            skills.extend(matched)
            lock_entries.extend(entries_locked)

        groups = group_entries(unlocked)
        for group in groups:
            resolved = self._resolve_group(group, warnings)
            matched, entries_locked = self._match_group(group.source, group.entries, resolved, warnings)
            skills.extend(matched)
            lock_entries.extend(entries_locked)

        position = {(e.source, e.name.casefold()): i for i, e in enumerate(entries)}
        skills.sort(key=lambda s: position[(s.entry.source, s.entry.name.casefold())])
        lock_entries.sort(key=lambda e: position[e.key])

        return Reconciliation(
            skills=skills,
            lock_entries=lock_entries,
            warnings=warnings,
            fetch_count=len(pinned) + len(groups),
        )
