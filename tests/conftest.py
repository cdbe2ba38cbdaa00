"""Shared fixtures for ghsemver tests — no network or git repository needed."""

from __future__ import annotations

from collections import Counter

import pytest

from ghsemver.engines.history.models import CommitEvent, PullRequestEvent


class FakeHistorySource:
    """In-memory HistorySource; records calls and labels added."""

    def __init__(
        self,
        pull_requests: list[PullRequestEvent] | None = None,
        commits: list[CommitEvent] | None = None,
        pr_commits: dict[int, list[str]] | None = None,
        labels: dict[int, list[str]] | None = None,
        failing_prs: set[int] | None = None,
    ) -> None:
        self.pull_requests = list(pull_requests or [])
        self.commits = list(commits or [])
        self.pr_commits = dict(pr_commits or {})
        self.labels = dict(labels or {})
        self.failing_prs = set(failing_prs or ())
        self.calls: Counter[str] = Counter()
        self.added_labels: list[tuple[int, str]] = []

    async def search_merged_pull_requests(self) -> list[PullRequestEvent]:
        self.calls["search_merged_pull_requests"] += 1
        return list(self.pull_requests)

    async def get_pull_request_commits(self, number: int) -> list[str]:
        self.calls["get_pull_request_commits"] += 1
        if number in self.failing_prs:
            raise RuntimeError(f"boom on #{number}")
        return list(self.pr_commits.get(number, []))

    async def get_all_commits(self) -> list[CommitEvent]:
        self.calls["get_all_commits"] += 1
        return list(self.commits)

    async def get_pull_request(self, number: int) -> PullRequestEvent:
        self.calls["get_pull_request"] += 1
        return next(pr for pr in self.pull_requests if pr.number == number)

    async def get_commit(self, sha: str) -> CommitEvent:
        self.calls["get_commit"] += 1
        return next(c for c in self.commits if c.sha == sha)

    async def get_labels(self, number: int) -> list[str]:
        self.calls["get_labels"] += 1
        return list(self.labels.get(number, []))

    async def add_label(self, number: int, label: str) -> None:
        self.added_labels.append((number, label))


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_source():
    """Factory for FakeHistorySource instances."""
    return FakeHistorySource
