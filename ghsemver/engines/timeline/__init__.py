"""Timeline engine — deduplicated, chronologically ordered repository history."""

from ghsemver.engines.timeline.builder import (
    TimelineBuilder,
    independent_commits,
    is_release_artifact,
    order_events,
)

__all__ = [
    "TimelineBuilder",
    "independent_commits",
    "is_release_artifact",
    "order_events",
]
