"""Data models for repository history events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class PullRequestEvent:
    """A merged pull request.

    This is a pure data structure — the commit list is filled in by the
    timeline builder once the per-PR commit lookups have returned.
    """

    number: int
    date: datetime  # merged_at
    title: str
    labels: tuple[str, ...] = ()
    commits: tuple[str, ...] = field(default=(), compare=False)
    url: str | None = None
    # The commit the merge put on the branch; for squash and rebase merges it
    # is not among *commits*.
    merge_commit_sha: str | None = None

    @property
    def ref(self) -> str:
        return f"#{self.number}"

    @property
    def summary(self) -> str:
        return self.title


@dataclass(frozen=True)
class CommitEvent:
    """A commit on the default branch. Commits never carry labels."""

    sha: str
    date: datetime  # author date
    message: str
    url: str | None = None

    @property
    def labels(self) -> None:
        return None

    @property
    def ref(self) -> str:
        return self.sha

    @property
    def summary(self) -> str:
        return self.message.split("\n", 1)[0]


Event = PullRequestEvent | CommitEvent
