"""Changelog renderer — the whole history as day-sections, newest first."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timezone

import structlog

from ghsemver.engines.changelog.formatter import ChangelogFormatter, current_version_heading, day_heading
from ghsemver.engines.history.models import Event
from ghsemver.engines.versioning.labels import LabelClassifier
from ghsemver.engines.versioning.models import Version
from ghsemver.engines.versioning.reducer import iter_versions

log = structlog.get_logger("ghsemver.changelog")


def render_changelog(
    timeline: Sequence[Event],
    start: Version,
    classifier: LabelClassifier,
    formatter: ChangelogFormatter | None = None,
    *,
    today: date | None = None,
) -> list[str]:
    """Render *timeline* into changelog lines.

    The timeline is walked oldest first, exactly like the version reducer,
    so each entry shows the version its event produced. Text chunks are
    collected in that order and reversed at the end; a day heading is pushed
    after the entries it covers and the header is pushed last so that both
    end up on top after the reversal. Days are compared in the timezone of
    the event dates (UTC for GitHub data).
    """
    formatter = formatter or ChangelogFormatter()
    chunks: list[str] = []

    if timeline:
        version = start
        last_day = timeline[0].date.date()
        for step in iter_versions(timeline, start, classifier):
            current_day = step.event.date.date()
            if current_day != last_day:
                chunks.append(f"\n{day_heading(last_day)}\n\n")
            chunks.append(f"{formatter.entry(step.version, step.event, step.directive)}\n")
            version = step.version
            last_day = current_day
    else:
        version = start
        last_day = today or datetime.now(timezone.utc).date()

    chunks.append(f"{current_version_heading(last_day, version)}\n\n")
    chunks.append("".join(f"{line}\n" for line in formatter.header()))

    chunks.reverse()
    lines = "".join(chunks).splitlines()
    log.info("changelog.rendered", events=len(timeline), version=str(version), lines=len(lines))
    return lines
