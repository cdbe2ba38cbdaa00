"""Changelog engine — render full history and merge single releases."""

from ghsemver.engines.changelog.document import read_changelog, write_changelog
from ghsemver.engines.changelog.formatter import HEADER_LINES, ChangelogFormatter
from ghsemver.engines.changelog.merger import heading_date, merge_changelog
from ghsemver.engines.changelog.renderer import render_changelog

__all__ = [
    "HEADER_LINES",
    "ChangelogFormatter",
    "heading_date",
    "merge_changelog",
    "read_changelog",
    "render_changelog",
    "write_changelog",
]
