"""Increment directives and semantic version arithmetic."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from ghsemver.exceptions import InvalidDirectiveError, VersionParseError

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")


class Directive(str, enum.Enum):
    """The version increment derived from a single event."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"  # internal change, no increment
    RELEASED = "released"  # already shipped

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class Version:
    """An immutable ``major.minor.patch`` version."""

    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> Version:
        match = _VERSION_RE.match(text.strip())
        if not match:
            raise VersionParseError(f"not a semantic version: {text!r}")
        return cls(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def bump(directive: Directive, current: Version) -> Version:
    """Apply *directive* to *current* and return the next version.

    ``RELEASED`` is a gating signal, not an arithmetic operation; if it gets
    here it leaves the version unchanged, like ``NONE``.
    """
    if not isinstance(directive, Directive):
        raise InvalidDirectiveError(directive)
    if directive is Directive.MAJOR:
        return Version(current.major + 1, 0, 0)
    if directive is Directive.MINOR:
        return Version(current.major, current.minor + 1, 0)
    if directive is Directive.PATCH:
        return Version(current.major, current.minor, current.patch + 1)
    return current
