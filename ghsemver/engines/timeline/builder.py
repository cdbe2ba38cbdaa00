"""Timeline builder — merge pull requests and independent commits into one history."""

from __future__ import annotations

import asyncio
import dataclasses
import re
from collections.abc import Iterable, Sequence

import structlog

from ghsemver.engines.history.models import CommitEvent, Event, PullRequestEvent
from ghsemver.engines.history.source import HistorySource
from ghsemver.exceptions import DataSourceError

log = structlog.get_logger("ghsemver.timeline")

_DEFAULT_CONCURRENCY = 8

# Commits that only exist because of a merge or a previous automated release.
RELEASE_ARTIFACT_PATTERNS = (
    re.compile(r"^Merge pull request #"),
    re.compile(r"^Automated release: v", re.IGNORECASE),
    re.compile(r"\[ci skip\]"),
    re.compile(r"\[skip ci\]"),
)


def is_release_artifact(message: str) -> bool:
    return any(pattern.search(message) for pattern in RELEASE_ARTIFACT_PATTERNS)


def independent_commits(
    commits: Iterable[CommitEvent], pr_commit_shas: set[str]
) -> list[CommitEvent]:
    """Commits not represented by any pull request and not produced by a release."""
    return [
        commit
        for commit in commits
        if commit.sha not in pr_commit_shas and not is_release_artifact(commit.message)
    ]


def order_events(events: Iterable[Event]) -> list[Event]:
    """Stable sort by date; events sharing a timestamp keep their input order."""
    return sorted(events, key=lambda event: event.date)


class TimelineBuilder:
    """Builds the deduplicated, chronologically ordered timeline of a repository.

    The result is cached on the instance: one builder per run, and a run never
    fetches the history twice.
    """

    def __init__(self, source: HistorySource, *, concurrency: int = _DEFAULT_CONCURRENCY) -> None:
        self._source = source
        self._concurrency = concurrency
        self._timeline: list[Event] | None = None

    async def build(self) -> list[Event]:
        if self._timeline is not None:
            return self._timeline

        log.info("timeline.fetching")
        try:
            pull_requests, commits = await asyncio.gather(
                self._source.search_merged_pull_requests(),
                self._source.get_all_commits(),
            )
        except Exception as exc:
            raise DataSourceError(f"failed to fetch repository history: {exc}") from exc

        self._timeline = await self.assemble(pull_requests, commits)
        return self._timeline

    async def assemble(
        self, pull_requests: Sequence[PullRequestEvent], commits: Sequence[CommitEvent]
    ) -> list[Event]:
        """Attach commits to each pull request, drop duplicates and sort."""
        resolved = await self._resolve_pull_request_commits(pull_requests)

        pr_commit_shas: set[str] = set()
        for pr in resolved:
            pr_commit_shas.update(pr.commits)
            if pr.merge_commit_sha:
                pr_commit_shas.add(pr.merge_commit_sha)

        independent = independent_commits(commits, pr_commit_shas)
        timeline = order_events([*resolved, *independent])
        log.info(
            "timeline.built",
            pull_requests=len(resolved),
            pr_commits=len(pr_commit_shas),
            commits=len(commits),
            independent_commits=len(independent),
            events=len(timeline),
        )
        return timeline

    async def _resolve_pull_request_commits(
        self, pull_requests: Sequence[PullRequestEvent]
    ) -> list[PullRequestEvent]:
        sem = asyncio.Semaphore(self._concurrency)

        async def _one(pr: PullRequestEvent) -> PullRequestEvent:
            async with sem:
                try:
                    shas = await self._source.get_pull_request_commits(pr.number)
                except Exception as exc:
                    log.error("timeline.pr_commits_failed", number=pr.number, error=str(exc))
                    raise DataSourceError(
                        f"failed to fetch commits for PR #{pr.number}: {exc}"
                    ) from exc
            return dataclasses.replace(pr, commits=tuple(shas))

        # Any failure aborts the build; a PR without its commits would leak
        # those commits into the timeline as independent events.
        tasks = [asyncio.ensure_future(_one(pr)) for pr in pull_requests]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
