"""CLI entry point: ghsemver.

Subcommands:
    ghsemver release --changelog --push --publish   # release the latest merged change
    ghsemver refresh [--push] [--publish]           # recompute version + changelog from history
    ghsemver init                                   # first refresh, ignores the release branch
    ghsemver version                                # print the version computed from history
    ghsemver changelog                              # print the changelog computed from history
    ghsemver check --pr 42                          # fail unless PR #42 has a version label
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

import click

from ghsemver.core.config import Options, Settings, load_settings
from ghsemver.core.github import parse_repo_url
from ghsemver.core.logging import setup_logging
from ghsemver.engines.history.github_client import GitHubClient
from ghsemver.engines.history.source import GitHubHistorySource
from ghsemver.engines.release.orchestrator import ReleaseOrchestrator, ReleaseState
from ghsemver.engines.release.vcs import GitRunner
from ghsemver.exceptions import ConfigError, GhSemverError

T = TypeVar("T")

_GATE_REASONS = {
    ReleaseState.GATED_RELEASED: "the latest change is already released",
    ReleaseState.GATED_INTERNAL: "the latest change is internal",
}


@dataclass
class _State:
    path: Path
    settings: Settings
    dry_run: bool


def _resolve_repository(settings: Settings, vcs: GitRunner) -> tuple[str, str]:
    try:
        if settings.github.repository:
            return parse_repo_url(settings.github.repository)
        return vcs.remote_slug()
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _run(state: _State, options: Options, fn: Callable[[ReleaseOrchestrator], Awaitable[T]]) -> T:
    """Build the orchestrator for *state* and run *fn* with it, exiting 1 on errors."""

    async def _main() -> T:
        settings = state.settings
        vcs = GitRunner(state.path)
        owner, repo = _resolve_repository(settings, vcs)
        async with GitHubClient(
            token=settings.github.resolved_token(), base_url=settings.github.api_url
        ) as client:
            source = GitHubHistorySource(client, owner, repo, branch=settings.branch)
            orchestrator = ReleaseOrchestrator(settings, options, source, vcs)
            return await fn(orchestrator)

    try:
        return asyncio.run(_main())
    except GhSemverError as exc:
        click.secho(f"Error: {exc}", fg="red", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option("--dry-run", is_flag=True, help="Compute and log, but change nothing")
@click.option("--branch", default=None, help="Release branch (overrides configuration)")
@click.option(
    "--path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
    help="Project directory",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, dry_run: bool, branch: str | None, path: Path) -> None:
    """Semantic versions and changelogs from GitHub pull request labels."""
    setup_logging(verbose)
    try:
        settings = load_settings(path)
    except ConfigError as exc:
        click.secho(f"Error: {exc}", fg="red", err=True)
        sys.exit(1)
    if branch:
        settings.branch = branch
    ctx.obj = _State(path=path, settings=settings, dry_run=dry_run)


@main.command()
@click.option("--changelog", is_flag=True, help="Append the change to the changelog")
@click.option("--push", is_flag=True, help="Commit, tag and push the release")
@click.option("--publish", is_flag=True, help="Publish the package (implies --push)")
@click.pass_obj
def release(state: _State, changelog: bool, push: bool, publish: bool) -> None:
    """Release the latest merged change according to its label."""
    options = Options(dry_run=state.dry_run, push=push, publish=publish, changelog=changelog)
    plan = _run(state, options, lambda orchestrator: orchestrator.release())
    if not plan.released:
        click.echo(f"Nothing to release: {_GATE_REASONS[plan.state]} ({plan.change.event.ref}).")
        return
    click.echo(f"Released v{plan.target} ({plan.change.directive} from {plan.change.event.ref}).")


@main.command()
@click.option("--push", is_flag=True, help="Commit, tag and push the refreshed files")
@click.option("--publish", is_flag=True, help="Publish the package (implies --push)")
@click.pass_obj
def refresh(state: _State, push: bool, publish: bool) -> None:
    """Recompute the version and changelog from the full history."""
    options = Options(dry_run=state.dry_run, push=push, publish=publish)
    _refresh(state, options)


@main.command()
@click.pass_obj
def init(state: _State) -> None:
    """Write the version and changelog for the first time, on any branch."""
    _refresh(state, Options(dry_run=state.dry_run, init=True))


def _refresh(state: _State, options: Options) -> None:
    result = _run(state, options, lambda orchestrator: orchestrator.refresh())
    if not result.applied:
        click.secho("WARNING!", fg="red", bold=True)
        click.echo(
            f"The current version in the manifest ({result.current}) is greater than the "
            f"calculated version ({result.computed}).\n"
            "To keep the changelog consistent, set start_version in [tool.ghsemver] or label "
            "existing pull requests as they should affect the version."
        )
        return
    if result.in_sync:
        click.secho("HEADS UP!", fg="cyan", bold=True)
        click.echo(
            f"The manifest version already equals the calculated version ({result.computed}). "
            "--push and --publish are ignored; commit and push the changelog manually."
        )
    click.echo(str(result.computed))


@main.command()
@click.pass_obj
def version(state: _State) -> None:
    """Print the version computed from the full history."""
    options = Options(dry_run=True, init=True)
    computed = _run(state, options, lambda orchestrator: orchestrator.calculate_current_version())
    click.echo(str(computed))


@main.command()
@click.pass_obj
def changelog(state: _State) -> None:
    """Print the changelog computed from the full history."""
    options = Options(dry_run=True, init=True)
    lines = _run(state, options, lambda orchestrator: orchestrator.changelog_lines())
    click.echo("\n".join(lines))


@main.command()
@click.option(
    "--pr",
    "number",
    type=int,
    required=True,
    envvar="GHSEMVER_PR_NUMBER",
    help="Pull request number (default: $GHSEMVER_PR_NUMBER)",
)
@click.pass_obj
def check(state: _State, number: int) -> None:
    """Fail unless the pull request carries a recognised version label."""
    options = Options(dry_run=True, init=True)
    directive = _run(state, options, lambda orchestrator: orchestrator.check(number))
    click.echo(f"PR #{number}: {directive}")
