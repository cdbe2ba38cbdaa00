"""History engine — pull requests, commits and labels from the hosting API."""

from ghsemver.engines.history.github_client import GitHubClient, RateLimitError
from ghsemver.engines.history.models import CommitEvent, Event, PullRequestEvent
from ghsemver.engines.history.source import GitHubHistorySource, HistorySource

__all__ = [
    "CommitEvent",
    "Event",
    "GitHubClient",
    "GitHubHistorySource",
    "HistorySource",
    "PullRequestEvent",
    "RateLimitError",
]
