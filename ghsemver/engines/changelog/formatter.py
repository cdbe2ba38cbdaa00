"""Text of the changelog header, day headings and entry lines."""

from __future__ import annotations

from datetime import date

from ghsemver.engines.history.models import Event, PullRequestEvent
from ghsemver.engines.versioning.models import Directive, Version

# The merger relies on the header being exactly this many lines.
HEADER_LINES = 5

_HEADER = (
    "# Changelog",
    "",
    "All notable changes to this project are documented in this file.",
    "Version numbers are computed from pull request labels by ghsemver.",
    "",
)

_SHOWN_DIRECTIVES = (Directive.MAJOR, Directive.MINOR, Directive.PATCH)


def day_heading(day: date) -> str:
    return f"## {day.isoformat()}"


def current_version_heading(day: date, version: Version) -> str:
    return f"{day_heading(day)} - [{version} - current version]"


class ChangelogFormatter:
    """Produces the per-line text; grouping and ordering live in the renderer."""

    def header(self) -> list[str]:
        return list(_HEADER)

    def entry(self, version: Version, event: Event, directive: Directive | None = None) -> str:
        if isinstance(event, PullRequestEvent):
            ref = f"#{event.number}"
        else:
            ref = event.sha[:7]
        link = f"[{ref}]({event.url})" if event.url else ref
        kind = f" ({directive})" if directive in _SHOWN_DIRECTIVES else ""
        return f"- **{version}**{kind} {event.summary} ({link})"
