"""Command line entry point: amplifier-skills."""

import logging
from pathlib import Path
from typing import Annotated
from typing import NoReturn

import typer

from .agents import AGENTS
from .agents import DEFAULT_AGENT
from .context import SkillsContext
from .exceptions import SkillError
from .exceptions import SkillNotFoundError
from .git import GitFetcher
from .pipeline import InstallRecord
from .pipeline import InstallReport
from .pipeline import install_from_manifest
from .pipeline import install_from_source
from .pipeline import list_source_skills

app = typer.Typer(
    help="Install agent skills from git repositories or a skills manifest.",
    add_completion=False,
)

AgentOption = Annotated[
    list[str] | None,
    typer.Option("--agent", "-a", help=f"Agent to install for (repeatable). One of: {', '.join(AGENTS)}."),
]
GlobalOption = Annotated[
    bool,
    typer.Option("--global", "-g", help="Install into the user-level skills directory instead of the project."),
]


def _make_fetcher(context: SkillsContext) -> GitFetcher:
    return GitFetcher.from_context(context)


def _fail(error: SkillError) -> NoReturn:
    typer.secho(error.message, fg=typer.colors.RED, err=True)
    if isinstance(error, SkillNotFoundError) and error.available:
        typer.echo("Available skills:", err=True)
        for name in error.available:
            typer.echo(f"  - {name}", err=True)
    raise typer.Exit(1)


def _target_label(record: InstallRecord) -> str:
    if record.location:
        return f"{record.agent} ({record.location})"
    return record.agent


def _print_report(report: InstallReport) -> None:
    for warning in report.warnings:
        typer.secho(f"warning: {warning}", fg=typer.colors.YELLOW)

    for record in report.succeeded:
        typer.secho(f"✓ {record.skill} → {_target_label(record)}", fg=typer.colors.GREEN)
        typer.echo(f"    {record.result.path}")

    for record in report.failed:
        typer.secho(f"✗ {record.skill} → {_target_label(record)}", fg=typer.colors.RED)
        typer.echo(f"    {record.result.error}")

    if report.lock_path is not None:
        typer.echo(f"Lock file written to {report.lock_path}")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("add")
def add(
    source: Annotated[str, typer.Argument(help="Git URL, GitHub shorthand (owner/repo) or path to a skill.")],
    skill: Annotated[
        list[str] | None, typer.Option("--skill", "-s", help="Skill name to install (repeatable).")
    ] = None,
    agent: AgentOption = None,
    global_: GlobalOption = False,
    list_only: Annotated[bool, typer.Option("--list", "-l", help="List available skills without installing.")] = False,
) -> None:
    """Install skills from a single source."""
    context = SkillsContext.from_environment()
    fetcher = _make_fetcher(context)

    try:
        if list_only:
            for found in list_source_skills(source, context=context, fetcher=fetcher):
                typer.secho(found.name, fg=typer.colors.CYAN)
                typer.echo(f"    {found.description}")
            return

        report = install_from_source(
            source,
            agents=agent or [DEFAULT_AGENT],
            skill_names=skill,
            scope="global" if global_ else "project",
            context=context,
            fetcher=fetcher,
        )
    except SkillError as e:
        _fail(e)

    _print_report(report)
    if report.failed:
        raise typer.Exit(1)


@app.command("install")
def install(
    from_file: Annotated[Path, typer.Option("--from-file", "-f", help="TOML manifest listing skills to install.")],
    agent: AgentOption = None,
    global_: GlobalOption = False,
    frozen: Annotated[
        bool, typer.Option("--frozen", help="Install the exact commits recorded in the lock file.")
    ] = False,
    lock: Annotated[bool, typer.Option("--lock/--no-lock", help="Write the lock file after installing.")] = True,
) -> None:
    """Install every skill listed in a manifest file."""
    context = SkillsContext.from_environment()

    try:
        report = install_from_manifest(
            from_file,
            agents=agent or [DEFAULT_AGENT],
            scope="global" if global_ else "project",
            context=context,
            fetcher=_make_fetcher(context),
            frozen=frozen,
            write_lock=lock,
        )
    except SkillError as e:
        _fail(e)

    _print_report(report)
    if report.failed:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
