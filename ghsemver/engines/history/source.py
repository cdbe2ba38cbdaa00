"""History sources — where pull requests, commits and labels come from."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from ghsemver.engines.history.github_client import GitHubClient
from ghsemver.engines.history.models import CommitEvent, PullRequestEvent

log = structlog.get_logger("ghsemver.history")


class HistorySource(Protocol):
    """Everything the timeline builder and the release flow read from the host."""

    async def search_merged_pull_requests(self) -> list[PullRequestEvent]: ...

    async def get_pull_request_commits(self, number: int) -> list[str]: ...

    async def get_all_commits(self) -> list[CommitEvent]: ...

    async def get_pull_request(self, number: int) -> PullRequestEvent: ...

    async def get_commit(self, sha: str) -> CommitEvent: ...

    async def get_labels(self, number: int) -> list[str]: ...

    async def add_label(self, number: int, label: str) -> None: ...


class GitHubHistorySource:
    """:class:`HistorySource` backed by the GitHub REST API."""

    def __init__(self, client: GitHubClient, owner: str, repo: str, *, branch: str = "main") -> None:
        self._client = client
        self.owner = owner
        self.repo = repo
        self.branch = branch

    @property
    def _base(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def search_merged_pull_requests(self) -> list[PullRequestEvent]:
        """GET /repos/{owner}/{repo}/pulls?state=closed — only merged PRs."""
        params = {"state": "closed", "sort": "created", "direction": "asc"}
        events: list[PullRequestEvent] = []
        async for item in self._client.get_paginated(f"{self._base}/pulls", params):
            if not item.get("merged_at"):
                continue
            events.append(_pull_request_from_item(item))
        log.info("history.pull_requests", repo=f"{self.owner}/{self.repo}", count=len(events))
        return events

    async def get_pull_request_commits(self, number: int) -> list[str]:
        return [
            item["sha"]
            async for item in self._client.get_paginated(f"{self._base}/pulls/{number}/commits")
        ]

    async def get_all_commits(self) -> list[CommitEvent]:
        """GET /repos/{owner}/{repo}/commits — every commit on the branch."""
        events = [
            _commit_from_item(item)
            async for item in self._client.get_paginated(
                f"{self._base}/commits", {"sha": self.branch}
            )
        ]
        log.info("history.commits", repo=f"{self.owner}/{self.repo}", count=len(events))
        return events

    async def get_pull_request(self, number: int) -> PullRequestEvent:
        item = await self._client.get(f"{self._base}/pulls/{number}")
        return _pull_request_from_item(item)

    async def get_commit(self, sha: str) -> CommitEvent:
        item = await self._client.get(f"{self._base}/commits/{sha}")
        return _commit_from_item(item)

    async def get_labels(self, number: int) -> list[str]:
        return [
            item["name"]
            async for item in self._client.get_paginated(f"{self._base}/issues/{number}/labels")
        ]

    async def add_label(self, number: int, label: str) -> None:
        await self._client.post(f"{self._base}/issues/{number}/labels", {"labels": [label]})
        log.info("history.label_added", number=number, label=label)


# ── helpers ───────────────────────────────────────────────────────────────


def _pull_request_from_item(item: dict[str, Any]) -> PullRequestEvent:
    merged_at = _parse_datetime(item.get("merged_at")) or _parse_datetime(item.get("closed_at"))
    return PullRequestEvent(
        number=int(item["number"]),
        date=merged_at or datetime.fromtimestamp(0, timezone.utc),
        title=item.get("title", ""),
        labels=tuple(label["name"] for label in item.get("labels") or ()),
        url=item.get("html_url"),
        merge_commit_sha=item.get("merge_commit_sha"),
    )


def _commit_from_item(item: dict[str, Any]) -> CommitEvent:
    commit = item.get("commit", {})
    author_info = commit.get("author") or {}
    return CommitEvent(
        sha=item["sha"],
        date=_parse_datetime(author_info.get("date")) or datetime.fromtimestamp(0, timezone.utc),
        message=commit.get("message", ""),
        url=item.get("html_url"),
    )


def _parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 datetime string, returning None on failure."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
