"""Changelog merger — prepend the latest release to an existing changelog.

The merge works on fixed line offsets: a header of ``HEADER_LINES`` lines,
then the ``## YYYY-MM-DD - [x.y.z - current version]`` heading, a blank line
and the entries. It only holds for documents produced by
:func:`~ghsemver.engines.changelog.renderer.render_changelog` (and by earlier
merges); hand-edited layouts are rejected or mangled. Callers go through
:func:`merge_changelog` only, so a structured day-section model can replace it.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timezone

import structlog

from ghsemver.engines.changelog.formatter import (
    HEADER_LINES,
    ChangelogFormatter,
    current_version_heading,
)
from ghsemver.engines.history.models import Event
from ghsemver.engines.versioning.models import Directive, Version
from ghsemver.exceptions import MalformedChangelogError, NoExistingChangelogError

log = structlog.get_logger("ghsemver.changelog")

_HEADING_PREFIX = "## "
_DATE_SLICE = slice(3, 13)


def heading_date(line: str) -> date:
    """Return the date embedded in a ``## YYYY-MM-DD`` heading line."""
    if not line.startswith(_HEADING_PREFIX):
        raise MalformedChangelogError(f"expected a dated heading, got {line!r}")
    try:
        return date.fromisoformat(line[_DATE_SLICE])
    except ValueError as exc:
        raise MalformedChangelogError(f"expected a dated heading, got {line!r}") from exc


def merge_changelog(
    existing: Sequence[str],
    new_version: Version,
    latest_event: Event,
    latest_directive: Directive | None = None,
    formatter: ChangelogFormatter | None = None,
    *,
    today: date | None = None,
) -> list[str]:
    """Insert the entry for *latest_event* at the top of *existing*.

    If the newest section already belongs to *today* the entry joins it and
    only its heading is replaced; otherwise a new section is opened and the
    previous heading loses its "current version" suffix.
    """
    if not any(line.strip() for line in existing):
        raise NoExistingChangelogError("changelog is empty")
    if len(existing) <= HEADER_LINES:
        raise MalformedChangelogError("changelog has no dated section after its header")

    formatter = formatter or ChangelogFormatter()
    today = today or datetime.now(timezone.utc).date()
    previous_heading = existing[HEADER_LINES]
    previous_day = heading_date(previous_heading)

    merged = list(existing[:HEADER_LINES])
    merged.append(current_version_heading(today, new_version))
    merged.append("")
    merged.append(formatter.entry(new_version, latest_event, latest_directive))

    if previous_day == today:
        merged.extend(existing[HEADER_LINES + 2 :])
    else:
        merged.append("")
        merged.append(previous_heading[: _DATE_SLICE.stop])
        merged.extend(existing[HEADER_LINES + 1 :])

    log.info(
        "changelog.merged",
        version=str(new_version),
        ref=latest_event.ref,
        same_day=previous_day == today,
    )
    return merged
