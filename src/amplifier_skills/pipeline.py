"""Install pipelines - tie reconciliation, agent targets and installation together.

Per KERNEL_PHILOSOPHY: Apps inject policy (context, agents, scope, fetcher).
Fatal errors propagate as SkillError subclasses before the lock file is
touched; per-target install failures are collected in the report.
"""

import logging
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from .agents import Scope
from .agents import get_agent
from .agents import location_base
from .agents import target_base
from .context import SkillsContext
from .discovery import discover_skills
from .exceptions import SkillError
from .exceptions import SkillInstallError
from .exceptions import SkillNotFoundError
from .exceptions import SkillResolutionError
from .git import GitFetcher
from .git import ResolutionFailure
from .git import cleanup_ephemeral_dir
from .git import resolve_revision
from .installer import InstallResult
from .installer import install_skill
from .lock import SkillLock
from .manifest import get_lock_file_path
from .manifest import parse_manifest_file
from .protocols import RepositoryFetcher
from .reconciler import SkillReconciler
from .schema import Skill
from .source import normalize_source

logger = logging.getLogger(__name__)


class InstallRecord(BaseModel):
    """One (skill, agent) install outcome."""

    model_config = ConfigDict(frozen=True)

    skill: str
    agent: str
    location: str | None = None
    result: InstallResult


class InstallReport(BaseModel):
    """Summary of an install run."""

    records: list[InstallRecord]
    warnings: list[str] = []
    lock_path: Path | None = None

    @property
    def succeeded(self) -> list[InstallRecord]:
        return [r for r in self.records if r.result.success]

    @property
    def failed(self) -> list[InstallRecord]:
        return [r for r in self.records if not r.result.success]


def _install_all(skills: list[Skill], agents: list[str], scope: Scope, context: SkillsContext) -> list[InstallRecord]:
    records = []
    for skill in skills:
        for agent_id in agents:
            result = install_skill(skill, target_base(agent_id, scope, context))
            records.append(InstallRecord(skill=skill.name, agent=agent_id, result=result))
    return records


def _install_at_locations(
    skill: Skill, locations: tuple[str, ...], agents: list[str], context: SkillsContext
) -> list[InstallRecord]:
    records = []
    for location in locations:
        for agent_id in agents:
            try:
                base = location_base(agent_id, location, context)
            except SkillInstallError as e:
                logger.warning(f"Skipping {skill.name} for {agent_id} at {location!r}: {e.message}")
                result = InstallResult(success=False, path=location, error=e.message)
            else:
                result = install_skill(skill, base)
            records.append(InstallRecord(skill=skill.name, agent=agent_id, location=location, result=result))
    return records


def install_from_manifest(
    manifest_path: Path,
    *,
    agents: list[str],
    scope: Scope = "project",
    context: SkillsContext,
    fetcher: RepositoryFetcher | None = None,
    frozen: bool = False,
    write_lock: bool = True,
) -> InstallReport:
    """
    Install every skill a manifest lists, then write its lock file.

    Args:
        manifest_path: Path to the TOML manifest
        agents: Agent ids to install for
        scope: "project" (under context.cwd) or "global" (under context.home);
            entries listing their own locations install there instead
        context: Run context
        fetcher: Repository fetcher (defaults to GitFetcher)
        frozen: Reproduce the commits recorded in the existing lock file
        write_lock: Write <manifest>-lock.toml after installing

    Returns:
        InstallReport with one record per (skill, agent) pair

    Raises:
        SkillManifestError: If the manifest is invalid
        SkillResolutionError: If a source cannot be fetched
        SkillNotFoundError: If a requested skill is missing from its source
        SkillInstallError: If an agent id is unknown
    """
    for agent_id in agents:
        get_agent(agent_id)

    entries = parse_manifest_file(manifest_path)
    lock_path = get_lock_file_path(manifest_path)

    with SkillReconciler(context, fetcher) as reconciler:
        if frozen:
            reconciliation = reconciler.reconcile_frozen(entries, SkillLock(lock_path=lock_path))
        else:
            reconciliation = reconciler.reconcile(entries)

        records = []
        for resolved in reconciliation.skills:
            if resolved.entry.locations:
                records.extend(_install_at_locations(resolved.skill, resolved.entry.locations, agents, context))
            else:
                records.extend(_install_all([resolved.skill], agents, scope, context))

    report = InstallReport(records=records, warnings=reconciliation.warnings)

    if write_lock:
        lock = SkillLock(lock_path=lock_path)
        lock.replace_entries(reconciliation.lock_entries)
        lock.save()
        report.lock_path = lock_path
        logger.info(f"Lock file written to {lock_path}")

    logger.info(f"Installed {len(report.succeeded)} of {len(records)} skill targets")
    return report


def _fetch_and_discover(source: str, context: SkillsContext, fetcher: RepositoryFetcher) -> tuple[Path, list[Skill]]:
    source_spec = normalize_source(source)
    result = resolve_revision(source_spec.url, None, fetcher=fetcher, context=context)
    if isinstance(result, ResolutionFailure):
        raise SkillResolutionError(f"Failed to retrieve {source}: {result.error}", context={"source": source})

    return result.content_root, discover_skills(result.content_root, source_spec.subpath)


def _cleanup(path: Path, context: SkillsContext) -> None:
    try:
        cleanup_ephemeral_dir(path, context.temp_root)
    except Exception as e:
        logger.warning(f"Could not clean up {path}: {e}")


def list_source_skills(
    source: str,
    *,
    context: SkillsContext,
    fetcher: RepositoryFetcher | None = None,
) -> list[Skill]:
    """
    List the skills a source offers without installing anything.

    The returned skills' paths point into a directory that has already
    been removed; use them for names and descriptions only.
    """
    content_root, skills = _fetch_and_discover(source, context, fetcher or GitFetcher.from_context(context))
    _cleanup(content_root, context)
    return skills


def install_from_source(
    source: str,
    *,
    agents: list[str],
    skill_names: list[str] | None = None,
    scope: Scope = "project",
    context: SkillsContext,
    fetcher: RepositoryFetcher | None = None,
) -> InstallReport:
    """
    Install skills straight from a source string (default branch).

    Args:
        source: URL, shorthand or git locator
        agents: Agent ids to install for
        skill_names: Names to install (case-insensitive); None installs all
        scope: "project" or "global"
        context: Run context
        fetcher: Repository fetcher (defaults to GitFetcher)

    Raises:
        SkillError: If the source has no skills
        SkillNotFoundError: If none of skill_names is found
        SkillResolutionError: If the source cannot be fetched
    """
    for agent_id in agents:
        get_agent(agent_id)

    content_root, skills = _fetch_and_discover(source, context, fetcher or GitFetcher.from_context(context))
    try:
        if not skills:
            raise SkillError(
                f"No valid skills found in {source}. Skills require a SKILL.md with name and description.",
                context={"source": source},
            )

        selected = skills
        if skill_names:
            wanted = {name.casefold() for name in skill_names}
            selected = [s for s in skills if s.name.casefold() in wanted]
            if not selected:
                raise SkillNotFoundError(", ".join(skill_names), source, [s.name for s in skills])

        records = _install_all(selected, agents, scope, context)
    finally:
        _cleanup(content_root, context)

    return InstallReport(records=records)
