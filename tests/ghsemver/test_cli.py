"""Tests for CLI commands — GitHub and git are mocked."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from ghsemver.cli import main
from ghsemver.engines.history.models import PullRequestEvent
from ghsemver.engines.release import Change, RefreshResult, ReleasePlan, ReleaseState
from ghsemver.engines.versioning import Directive, Version
from ghsemver.exceptions import MissingLabelError

_PR = PullRequestEvent(number=5, date=datetime(2024, 1, 1, tzinfo=timezone.utc), title="Thing")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "demo"\nversion = "1.2.3"\n', encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def orchestrator():
    """Patch the orchestrator class; yields (class mock, instance mock)."""
    with (
        patch("ghsemver.cli.setup_logging"),
        patch("ghsemver.cli._resolve_repository", return_value=("o", "r")),
        patch("ghsemver.cli.ReleaseOrchestrator") as cls,
    ):
        yield cls, cls.return_value


def _invoke(project: Path, *args: str, **kwargs):
    return CliRunner().invoke(main, ["--path", str(project), *args], **kwargs)


# ── release ──


class TestRelease:
    def test_released(self, project, orchestrator):
        cls, instance = orchestrator
        plan = ReleasePlan(
            ReleaseState.DONE, Change(_PR, Directive.MINOR, True), Version(1, 2, 3), Version(1, 3, 0)
        )
        instance.release = AsyncMock(return_value=plan)

        result = _invoke(project, "release", "--changelog", "--push")

        assert result.exit_code == 0, result.output
        assert "Released v1.3.0 (minor from #5)." in result.output
        options = cls.call_args[0][1]
        assert options.changelog and options.push
        assert not options.publish
        assert not options.dry_run

    def test_gated(self, project, orchestrator):
        _, instance = orchestrator
        plan = ReleasePlan(
            ReleaseState.GATED_RELEASED,
            Change(_PR, Directive.RELEASED, True),
            Version(1, 2, 3),
        )
        instance.release = AsyncMock(return_value=plan)

        result = _invoke(project, "release")

        assert result.exit_code == 0
        assert "Nothing to release: the latest change is already released (#5)." in result.output

    def test_global_flags(self, project, orchestrator):
        cls, instance = orchestrator
        plan = ReleasePlan(
            ReleaseState.GATED_INTERNAL, Change(_PR, Directive.NONE, True), Version(1, 2, 3)
        )
        instance.release = AsyncMock(return_value=plan)

        result = CliRunner().invoke(
            main, ["--dry-run", "--branch", "release", "--path", str(project), "release"]
        )

        assert result.exit_code == 0
        settings, options = cls.call_args[0][:2]
        assert settings.branch == "release"
        assert options.dry_run


# ── refresh / init ──


class TestRefresh:
    def test_applied(self, project, orchestrator):
        _, instance = orchestrator
        instance.refresh = AsyncMock(
            return_value=RefreshResult(Version(1, 3, 0), Version(1, 2, 3), [], False, True)
        )

        result = _invoke(project, "refresh", "--push")

        assert result.exit_code == 0
        assert result.output.strip().endswith("1.3.0")

    def test_version_ahead(self, project, orchestrator):
        _, instance = orchestrator
        instance.refresh = AsyncMock(
            return_value=RefreshResult(Version(1, 0, 0), Version(1, 2, 3), [], False, False)
        )

        result = _invoke(project, "refresh")

        assert result.exit_code == 0
        assert "WARNING!" in result.output
        assert "(1.2.3)" in result.output
        assert not result.output.strip().endswith("1.0.0")

    def test_in_sync(self, project, orchestrator):
        _, instance = orchestrator
        instance.refresh = AsyncMock(
            return_value=RefreshResult(Version(1, 2, 3), Version(1, 2, 3), [], True, True)
        )

        result = _invoke(project, "refresh", "--publish")

        assert result.exit_code == 0
        assert "HEADS UP!" in result.output

    def test_init_sets_flag(self, project, orchestrator):
        cls, instance = orchestrator
        instance.refresh = AsyncMock(
            return_value=RefreshResult(Version(0, 1, 0), Version(0, 0, 0), [], False, True)
        )

        result = _invoke(project, "init")

        assert result.exit_code == 0
        assert cls.call_args[0][1].init


# ── version / changelog / check ──


class TestQueries:
    def test_version(self, project, orchestrator):
        _, instance = orchestrator
        instance.calculate_current_version = AsyncMock(return_value=Version(4, 5, 6))

        result = _invoke(project, "version")

        assert result.exit_code == 0
        assert result.output == "4.5.6\n"

    def test_changelog(self, project, orchestrator):
        _, instance = orchestrator
        instance.changelog_lines = AsyncMock(return_value=["# Changelog", "", "## 2024-01-01"])

        result = _invoke(project, "changelog")

        assert result.exit_code == 0
        assert result.output == "# Changelog\n\n## 2024-01-01\n"

    def test_check_from_env(self, project, orchestrator):
        _, instance = orchestrator
        instance.check = AsyncMock(return_value=Directive.PATCH)

        result = _invoke(project, "check", env={"GHSEMVER_PR_NUMBER": "7"})

        assert result.exit_code == 0
        assert "PR #7: patch" in result.output
        instance.check.assert_awaited_once_with(7)

    def test_check_missing_label(self, project, orchestrator):
        _, instance = orchestrator
        instance.check = AsyncMock(side_effect=MissingLabelError(7, ["Version: Major"]))

        result = _invoke(project, "check", "--pr", "7")

        assert result.exit_code == 1
        assert "Error: Required label not found on PR #7" in result.output


# ── configuration errors ──


class TestConfigErrors:
    def test_invalid_config(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            '[tool.ghsemver]\nbranch = ["main"]\n', encoding="utf-8"
        )
        with patch("ghsemver.cli.setup_logging"):
            result = CliRunner().invoke(main, ["--path", str(tmp_path), "version"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_nonexistent_path(self):
        result = CliRunner().invoke(main, ["--path", "/definitely/not/here", "version"])
        assert result.exit_code != 0
