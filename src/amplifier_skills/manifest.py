"""Skill manifest parsing, validation and retrieval grouping.

Manifest format (TOML):

    [[skills]]
    source = "acme/tools"
    name = "release-notes"
    version = "1.2.0"   # optional: semantic version or "latest"
    locations = ["project", "docs"]   # optional: "global", "project" or a relative dir

Per IMPLEMENTATION_PHILOSOPHY: Reject malformed entries up front, naming the
offending index, before anything is fetched.
"""

import logging
import re
import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .exceptions import SkillManifestError

logger = logging.getLogger(__name__)

_SHORTHAND_SOURCE = re.compile(r"^[^/]+/[^/]+$")
_SEMVER = re.compile(r"^\d+\.\d+\.\d+(-[\w.]+)?(\+[\w.]+)?$")
_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:")

LOCATION_KEYWORDS = frozenset({"global", "project"})


class ManifestEntry(BaseModel):
    """One requested skill."""

    model_config = ConfigDict(frozen=True)

    source: str
    name: str
    version: str | None = None
    locations: tuple[str, ...] | None = None


class RetrievalGroup(BaseModel):
    """Manifest entries satisfied by a single repository fetch."""

    model_config = ConfigDict(frozen=True)

    source: str
    version: str | None
    entries: list[ManifestEntry]

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.source, self.version)


def is_valid_source(source: str) -> bool:
    """Shorthand "owner/repo" or a URL ("://" or scp-style "git@")."""
    return bool(_SHORTHAND_SOURCE.match(source)) or "://" in source or source.startswith("git@")


def is_valid_version(version: str) -> bool:
    """Semantic version (1.0.0, 1.0.0-rc.1, 1.0.0+build.5) or "latest"."""
    return version == "latest" or bool(_SEMVER.match(version))


def validate_location(location: str) -> str | None:
    """
    Check an install location: "global", "project" or a relative directory.

    Returns:
        None if the location is acceptable, otherwise the reason it is not

    Examples:
        >>> validate_location("docs/agents") is None
        True
        >>> validate_location("../elsewhere")
        'Location "../elsewhere" contains ".." which is not allowed'
    """
    if location in LOCATION_KEYWORDS:
        return None
    if not location.strip():
        return "Location cannot be empty"
    if location.startswith(("/", "~", "\\")) or _WINDOWS_DRIVE.match(location):
        return f'Location "{location}" must be a relative path'
    if ".." in location:
        return f'Location "{location}" contains ".." which is not allowed'
    if "\0" in location:
        return f'Location "{location}" contains invalid characters'
    return None


def validate_manifest_entry(entry: ManifestEntry, index: int, path: str | None = None) -> None:
    """
    Validate one manifest entry.

    Raises:
        SkillManifestError: If source, name, version or a location is malformed
    """
    if not entry.source.strip():
        raise SkillManifestError(f'Skill entry {index} missing required "source" field', path=path, index=index)
    if not entry.name.strip():
        raise SkillManifestError(f'Skill entry {index} missing required "name" field', path=path, index=index)
    if not is_valid_source(entry.source):
        raise SkillManifestError(
            f'Skill entry {index}: invalid source "{entry.source}". Use "owner/repo" or a full git URL.',
            path=path,
            index=index,
        )
    if entry.version is not None and not is_valid_version(entry.version):
        raise SkillManifestError(
            f'Skill entry {index}: invalid version "{entry.version}" for skill "{entry.name}". '
            'Use semantic versioning (e.g., 1.0.0) or "latest".',
            path=path,
            index=index,
        )
    for location in entry.locations or ():
        problem = validate_location(location)
        if problem:
            raise SkillManifestError(f"Skill entry {index}: {problem}", path=path, index=index)


def validate_manifest(entries: list[ManifestEntry], path: str | None = None) -> None:
    """
    Validate a whole manifest.

    The same skill (source + case-insensitive name) may be requested only once.

    Raises:
        SkillManifestError: On an empty manifest, a malformed entry or a duplicate
    """
    if not entries:
        raise SkillManifestError("Manifest file contains no skill entries", path=path)

    seen: dict[tuple[str, str], int] = {}
    for index, entry in enumerate(entries):
        validate_manifest_entry(entry, index, path)

        key = (entry.source, entry.name.casefold())
        if key in seen:
            raise SkillManifestError(
                f'Skill entry {index} duplicates entry {seen[key]}: "{entry.name}" from {entry.source}',
                path=path,
                index=index,
            )
        seen[key] = index


def parse_manifest(data: dict, path: str | None = None) -> list[ManifestEntry]:
    """
    Build validated entries from decoded manifest data.

    Args:
        data: Decoded TOML document
        path: Manifest path, used in error messages

    Raises:
        SkillManifestError: If the document does not describe a valid manifest
    """
    raw_skills = data.get("skills")
    if not isinstance(raw_skills, list):
        raise SkillManifestError("Manifest must contain a [[skills]] array", path=path)

    entries = []
    for index, raw in enumerate(raw_skills):
        if not isinstance(raw, dict):
            raise SkillManifestError(f"Invalid skill entry at index {index}", path=path, index=index)

        source = raw.get("source")
        if not isinstance(source, str) or not source:
            raise SkillManifestError(f'Skill entry {index} missing required "source" field', path=path, index=index)

        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise SkillManifestError(f'Skill entry {index} missing required "name" field', path=path, index=index)

        version = raw.get("version")
        if version is not None and not isinstance(version, str):
            raise SkillManifestError(f'Skill entry {index} "version" must be a string', path=path, index=index)

        locations = raw.get("locations")
        if locations is not None:
            if not isinstance(locations, list):
                raise SkillManifestError(f'Skill entry {index} "locations" must be an array', path=path, index=index)
            if not all(isinstance(loc, str) for loc in locations):
                raise SkillManifestError(
                    f'Skill entry {index} "locations" must contain only strings', path=path, index=index
                )
            locations = tuple(dict.fromkeys(locations)) or None

        entries.append(ManifestEntry(source=source, name=name, version=version or None, locations=locations))

    validate_manifest(entries, path)
    return entries


def parse_manifest_file(manifest_path: Path) -> list[ManifestEntry]:
    """
    Load and validate a manifest file.

    Raises:
        SkillManifestError: If the file is unreadable, not TOML, or invalid
    """
    try:
        with open(manifest_path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise SkillManifestError(f"Could not read manifest file: {e}", path=str(manifest_path)) from e
    except tomllib.TOMLDecodeError as e:
        raise SkillManifestError(f"Invalid TOML: {e}", path=str(manifest_path)) from e

    entries = parse_manifest(data, str(manifest_path))
    logger.debug(f"Loaded {len(entries)} skill entries from {manifest_path}")
    return entries


def group_entries(entries: list[ManifestEntry]) -> list[RetrievalGroup]:
    """
    Group entries by (source, version) in first-appearance order.

    Example:
        >>> groups = group_entries([
        ...     ManifestEntry(source="acme/tools", name="a"),
        ...     ManifestEntry(source="acme/tools", name="b"),
        ...     ManifestEntry(source="acme/tools", name="c", version="1.0.0"),
        ... ])
        >>> [(g.source, g.version, len(g.entries)) for g in groups]
        [('acme/tools', None, 2), ('acme/tools', '1.0.0', 1)]
    """
    grouped: dict[tuple[str, str | None], list[ManifestEntry]] = {}
    for entry in entries:
        grouped.setdefault((entry.source, entry.version), []).append(entry)

    return [
        RetrievalGroup(source=source, version=version, entries=members)
        for (source, version), members in grouped.items()
    ]


def get_lock_file_path(manifest_path: Path) -> Path:
    """
    Lock file path derived from a manifest path.

    Example:
        >>> get_lock_file_path(Path("skills.toml"))
        PosixPath('skills-lock.toml')
    """
    name = manifest_path.name
    stem = name[: -len(".toml")] if name.endswith(".toml") else name
    return manifest_path.with_name(f"{stem}-lock.toml")
