"""Tests for changelog rendering, merging and file handling."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from ghsemver.core.config import Settings
from ghsemver.engines.changelog import (
    HEADER_LINES,
    ChangelogFormatter,
    heading_date,
    merge_changelog,
    read_changelog,
    render_changelog,
    write_changelog,
)
from ghsemver.engines.history.models import CommitEvent, PullRequestEvent
from ghsemver.engines.versioning import Directive, LabelClassifier, Version
from ghsemver.exceptions import MalformedChangelogError, NoExistingChangelogError

HEADER = [
    "# Changelog",
    "",
    "All notable changes to this project are documented in this file.",
    "Version numbers are computed from pull request labels by ghsemver.",
    "",
]


def _timeline():
    return [
        PullRequestEvent(
            number=1,
            date=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
            title="Add feature",
            labels=("Version: Minor",),
        ),
        CommitEvent(
            sha="c1c1c1c1c1",
            date=datetime(2024, 1, 2, 9, tzinfo=timezone.utc),
            message="Fix typo\n\nin the README",
        ),
        PullRequestEvent(
            number=2,
            date=datetime(2024, 1, 2, 12, tzinfo=timezone.utc),
            title="Fix bug",
            labels=("Version: Patch",),
        ),
    ]


@pytest.fixture
def classifier() -> LabelClassifier:
    return LabelClassifier.from_settings(Settings())


@pytest.fixture
def rendered(classifier) -> list[str]:
    return render_changelog(_timeline(), Version(1, 0, 0), classifier)


def _pr3() -> PullRequestEvent:
    return PullRequestEvent(
        number=3,
        date=datetime(2024, 1, 2, 15, tzinfo=timezone.utc),
        title="Speed up",
        labels=("Version: Minor",),
    )


# ── TestFormatter ─────────────────────────────────────────────────────────


class TestFormatter:
    def test_header_length(self):
        assert len(ChangelogFormatter().header()) == HEADER_LINES

    def test_pull_request_entry_with_link(self):
        pr = PullRequestEvent(
            number=7,
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            title="Add thing",
            url="https://github.com/o/r/pull/7",
        )
        entry = ChangelogFormatter().entry(Version(2, 0, 0), pr, Directive.MAJOR)
        assert entry == "- **2.0.0** (major) Add thing ([#7](https://github.com/o/r/pull/7))"

    def test_commit_entry_uses_short_sha_and_subject(self):
        commit = CommitEvent(
            sha="0123456789abcdef",
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            message="Tidy up\n\nbody",
        )
        entry = ChangelogFormatter().entry(Version(1, 0, 0), commit, Directive.NONE)
        assert entry == "- **1.0.0** Tidy up (0123456)"

    def test_released_directive_not_shown(self):
        pr = PullRequestEvent(number=1, date=datetime(2024, 1, 1, tzinfo=timezone.utc), title="x")
        entry = ChangelogFormatter().entry(Version(1, 0, 0), pr, Directive.RELEASED)
        assert entry == "- **1.0.0** x (#1)"


# ── TestRenderChangelog ───────────────────────────────────────────────────


class TestRenderChangelog:
    def test_layout(self, rendered):
        assert rendered == HEADER + [
            "## 2024-01-02 - [1.1.1 - current version]",
            "",
            "- **1.1.1** (patch) Fix bug (#2)",
            "- **1.1.0** Fix typo (c1c1c1c)",
            "",
            "## 2024-01-01",
            "",
            "- **1.1.0** (minor) Add feature (#1)",
        ]

    def test_newest_entry_first_within_day(self, rendered):
        day = rendered[HEADER_LINES + 2 : HEADER_LINES + 4]
        assert day[0].startswith("- **1.1.1**")
        assert day[1].startswith("- **1.1.0**")

    def test_single_day(self, classifier):
        timeline = _timeline()[1:]
        lines = render_changelog(timeline, Version(0, 1, 0), classifier)
        assert lines[HEADER_LINES] == "## 2024-01-02 - [0.1.1 - current version]"
        assert lines.count("") == 3  # two in the header, one after the heading

    def test_empty_timeline(self, classifier):
        lines = render_changelog([], Version(2, 3, 4), classifier, today=date(2024, 6, 1))
        assert lines == HEADER + ["## 2024-06-01 - [2.3.4 - current version]"]

    def test_deterministic(self, classifier):
        first = render_changelog(_timeline(), Version(1, 0, 0), classifier)
        second = render_changelog(_timeline(), Version(1, 0, 0), classifier)
        assert first == second


# ── TestMergeChangelog ────────────────────────────────────────────────────


class TestMergeChangelog:
    def test_same_day(self, rendered):
        merged = merge_changelog(
            rendered, Version(1, 2, 0), _pr3(), Directive.MINOR, today=date(2024, 1, 2)
        )

        assert len(merged) == len(rendered) + 1
        assert merged[:HEADER_LINES] == HEADER
        assert merged[HEADER_LINES:] == [
            "## 2024-01-02 - [1.2.0 - current version]",
            "",
            "- **1.2.0** (minor) Speed up (#3)",
            "- **1.1.1** (patch) Fix bug (#2)",
            "- **1.1.0** Fix typo (c1c1c1c)",
            "",
            "## 2024-01-01",
            "",
            "- **1.1.0** (minor) Add feature (#1)",
        ]

    def test_new_day(self, rendered):
        merged = merge_changelog(
            rendered, Version(1, 2, 0), _pr3(), Directive.MINOR, today=date(2024, 1, 3)
        )

        assert len(merged) == 17
        assert merged[HEADER_LINES:11] == [
            "## 2024-01-03 - [1.2.0 - current version]",
            "",
            "- **1.2.0** (minor) Speed up (#3)",
            "",
            "## 2024-01-02",
            "",
        ]
        assert merged[11:] == rendered[HEADER_LINES + 2 :]
        assert sum("current version" in line for line in merged) == 1

    def test_twice_on_same_day(self, rendered):
        today = date(2024, 1, 3)
        once = merge_changelog(rendered, Version(1, 2, 0), _pr3(), Directive.MINOR, today=today)
        pr4 = PullRequestEvent(
            number=4, date=datetime(2024, 1, 3, tzinfo=timezone.utc), title="More"
        )
        twice = merge_changelog(once, Version(1, 2, 1), pr4, Directive.PATCH, today=today)

        assert sum(line.startswith("## 2024-01-03") for line in twice) == 1
        assert twice[HEADER_LINES] == "## 2024-01-03 - [1.2.1 - current version]"
        assert twice[HEADER_LINES + 2 : HEADER_LINES + 4] == [
            "- **1.2.1** (patch) More (#4)",
            "- **1.2.0** (minor) Speed up (#3)",
        ]

    def test_empty_document(self):
        with pytest.raises(NoExistingChangelogError):
            merge_changelog([], Version(1, 0, 0), _pr3())
        with pytest.raises(NoExistingChangelogError):
            merge_changelog(["", "  "], Version(1, 0, 0), _pr3())

    def test_header_only(self):
        with pytest.raises(MalformedChangelogError):
            merge_changelog(HEADER, Version(1, 0, 0), _pr3())

    def test_undated_heading(self):
        with pytest.raises(MalformedChangelogError):
            merge_changelog(HEADER + ["Some text", ""], Version(1, 0, 0), _pr3())


# ── TestHeadingDate ───────────────────────────────────────────────────────


class TestHeadingDate:
    def test_current_version_heading(self):
        assert heading_date("## 2024-01-02 - [1.1.1 - current version]") == date(2024, 1, 2)

    def test_plain_heading(self):
        assert heading_date("## 2023-12-31") == date(2023, 12, 31)

    @pytest.mark.parametrize("line", ["# Changelog", "## Unreleased", ""])
    def test_rejects(self, line):
        with pytest.raises(MalformedChangelogError):
            heading_date(line)


# ── TestDocument ──────────────────────────────────────────────────────────


class TestDocument:
    def test_round_trip(self, tmp_path, rendered):
        path = tmp_path / "CHANGELOG.md"
        write_changelog(path, rendered)
        assert path.read_text(encoding="utf-8").endswith(")\n")
        assert read_changelog(path) == rendered

    def test_missing(self, tmp_path):
        with pytest.raises(NoExistingChangelogError):
            read_changelog(tmp_path / "CHANGELOG.md")

    def test_empty(self, tmp_path):
        path = tmp_path / "CHANGELOG.md"
        path.write_text("\n\n", encoding="utf-8")
        with pytest.raises(NoExistingChangelogError):
            read_changelog(path)
