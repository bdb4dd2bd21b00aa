"""amplifier-skills - Resolve, lock and install agent skills from git sources.

Per KERNEL_PHILOSOPHY: This is library mechanism, apps inject policy
(SkillsContext paths, agent targets, repository fetcher).
"""

from .agents import AGENTS
from .agents import AgentPaths
from .agents import install_path
from .agents import location_base
from .agents import target_base
from .context import SkillsContext
from .discovery import discover_skills
from .discovery import list_skill_names
from .discovery import skill_display_name
from .exceptions import SkillError
from .exceptions import SkillInstallError
from .exceptions import SkillManifestError
from .exceptions import SkillMetadataError
from .exceptions import SkillNotFoundError
from .exceptions import SkillResolutionError
from .git import GitFetcher
from .git import ResolutionFailure
from .git import ResolvedRevision
from .git import cleanup_ephemeral_dir
from .git import resolve_revision
from .installer import InstallResult
from .installer import install_skill
from .installer import is_skill_installed
from .installer import sanitize_skill_name
from .lock import SkillLock
from .lock import SkillLockEntry
from .manifest import ManifestEntry
from .manifest import RetrievalGroup
from .manifest import get_lock_file_path
from .manifest import group_entries
from .manifest import validate_location
from .manifest import parse_manifest_file
from .pipeline import InstallReport
from .pipeline import install_from_manifest
from .pipeline import install_from_source
from .pipeline import list_source_skills
from .protocols import RepositoryFetcher
from .reconciler import Reconciliation
from .reconciler import SkillReconciler
from .reconciler import validate_skill_version
from .schema import Skill
from .schema import SkillVersion
from .source import SourceSpec
from .source import normalize_source
from .utils import is_path_within

__all__ = [
    # Sources
    "SourceSpec",
    "normalize_source",
    # Retrieval
    "RepositoryFetcher",
    "GitFetcher",
    "ResolvedRevision",
    "ResolutionFailure",
    "resolve_revision",
    "cleanup_ephemeral_dir",
    # Discovery
    "Skill",
    "SkillVersion",
    "discover_skills",
    "list_skill_names",
    "skill_display_name",
    # Manifest + reconciliation
    "ManifestEntry",
    "RetrievalGroup",
    "parse_manifest_file",
    "group_entries",
    "get_lock_file_path",
    "validate_location",
    "SkillReconciler",
    "Reconciliation",
    "validate_skill_version",
    # Lock file
    "SkillLock",
    "SkillLockEntry",
    # Installation
    "InstallResult",
    "install_skill",
    "is_skill_installed",
    "sanitize_skill_name",
    "is_path_within",
    "AGENTS",
    "AgentPaths",
    "target_base",
    "install_path",
    "location_base",
    "InstallReport",
    "install_from_manifest",
    "install_from_source",
    "list_source_skills",
    # Configuration
    "SkillsContext",
    # Exceptions
    "SkillError",
    "SkillInstallError",
    "SkillManifestError",
    "SkillMetadataError",
    "SkillNotFoundError",
    "SkillResolutionError",
]

__version__ = "0.1.0"
