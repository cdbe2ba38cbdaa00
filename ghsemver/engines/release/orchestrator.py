"""Release orchestrator — gate on the latest change, bump once, apply side effects.

Two flows share this class:

* ``release()`` looks only at the most recent change (the PR merged by HEAD,
  or HEAD itself), stops if it is labelled released or internal, and
  otherwise bumps the stored version once.
* ``refresh()`` replays the whole timeline to recompute the version and
  regenerate the changelog from scratch.

The change found by ``increment()`` travels to ``finish()`` inside the
returned :class:`ReleasePlan`; the orchestrator keeps no per-run state
besides the memoized timeline.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Awaitable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

import structlog

from ghsemver.core.config import Options, Settings
from ghsemver.engines.changelog.document import read_changelog, write_changelog
from ghsemver.engines.changelog.formatter import ChangelogFormatter
from ghsemver.engines.changelog.merger import merge_changelog
from ghsemver.engines.changelog.renderer import render_changelog
from ghsemver.engines.history.models import Event, PullRequestEvent
from ghsemver.engines.history.source import HistorySource
from ghsemver.engines.release.manifest import read_manifest_version, write_manifest_version
from ghsemver.engines.release.vcs import GitRunner
from ghsemver.engines.timeline.builder import TimelineBuilder
from ghsemver.engines.versioning.labels import LabelClassifier
from ghsemver.engines.versioning.models import Directive, Version, bump
from ghsemver.engines.versioning.reducer import reduce_version
from ghsemver.exceptions import ChangelogError, DataSourceError, MissingLabelError

log = structlog.get_logger("ghsemver.release")

T = TypeVar("T")


class ReleaseState(str, enum.Enum):
    START = "start"
    FETCHING = "fetching"
    GATED_RELEASED = "gated_released"
    GATED_INTERNAL = "gated_internal"
    COMPUTING_VERSION = "computing_version"
    DONE = "done"


@dataclass(frozen=True)
class Change:
    """The latest change and the directive it releases with."""

    event: Event
    directive: Directive
    labelled: bool  # False when *directive* is the missing-label fallback


@dataclass
class ReleasePlan:
    state: ReleaseState
    change: Change
    current: Version
    target: Version | None = None
    changed_files: list[Path] = field(default_factory=list)

    @property
    def released(self) -> bool:
        return self.state is ReleaseState.DONE


@dataclass
class RefreshResult:
    computed: Version
    current: Version
    lines: list[str]
    in_sync: bool
    applied: bool  # False when the stored version is ahead of the computed one


def release_commit_message(version: Version) -> str:
    return f"Automated release: v{version}\n\n[ci skip]"


class ReleaseOrchestrator:
    def __init__(
        self,
        settings: Settings,
        options: Options,
        source: HistorySource,
        vcs: GitRunner,
        *,
        classifier: LabelClassifier | None = None,
        formatter: ChangelogFormatter | None = None,
    ) -> None:
        self.settings = settings
        self._source = source
        self._vcs = vcs
        self.classifier = classifier or LabelClassifier.from_settings(settings)
        self.formatter = formatter or ChangelogFormatter()
        self._builder = TimelineBuilder(source, concurrency=settings.github.concurrency)

        branch = vcs.current_branch()
        if not options.init and branch != settings.branch and not options.dry_run:
            log.warning("release.dry_run_forced", branch=branch, release_branch=settings.branch)
            options = dataclasses.replace(options, dry_run=True)
        self.options = options
        log.info(
            "release.configured",
            branch=branch,
            release_branch=settings.branch,
            dry_run=options.dry_run,
            push=options.should_push,
            publish=options.publish,
        )

    @property
    def fallback_directive(self) -> Directive:
        """Directive for a change without a recognised label."""
        return Directive.NONE if self.settings.abort_on_missing_label else Directive.PATCH

    # ── latest change ──────────────────────────────────────────────────────

    async def latest_change(self) -> Change:
        number = self._vcs.last_pull_request_number()
        if number is not None:
            return await self.change_for_pull_request(number)

        sha = self._vcs.last_commit_sha()
        commit = await self._fetch(f"commit {sha}", self._source.get_commit(sha))
        fallback = self.fallback_directive
        log.warning(
            "release.commit_only",
            sha=sha,
            directive=str(fallback),
            abort_on_missing_label=self.settings.abort_on_missing_label,
        )
        return Change(commit, fallback, labelled=False)

    async def change_for_pull_request(self, number: int) -> Change:
        pr = await self._fetch(f"PR #{number}", self._source.get_pull_request(number))
        labels = await self._fetch(f"labels of PR #{number}", self._source.get_labels(number))
        pr = dataclasses.replace(pr, labels=tuple(labels))

        directive = self.classifier.classify(pr.labels)
        if directive is not None:
            log.info("release.label_found", number=number, directive=str(directive))
            return Change(pr, directive, labelled=True)

        fallback = self.fallback_directive
        log.warning(
            "release.missing_label",
            number=number,
            directive=str(fallback),
            abort_on_missing_label=self.settings.abort_on_missing_label,
        )
        return Change(pr, fallback, labelled=False)

    # ── release flow ───────────────────────────────────────────────────────

    async def increment(self) -> ReleasePlan:
        """Decide whether the latest change is released and, if so, apply the bump."""
        log.info("release.state", state=ReleaseState.START.value)
        current = read_manifest_version(self.settings.manifest)

        log.info("release.state", state=ReleaseState.FETCHING.value)
        change = await self.latest_change()

        if change.directive is Directive.RELEASED:
            log.warning("release.gated", reason="already released", ref=change.event.ref)
            return ReleasePlan(ReleaseState.GATED_RELEASED, change, current)
        if change.directive is Directive.NONE:
            log.warning("release.gated", reason="internal change", ref=change.event.ref)
            return ReleasePlan(ReleaseState.GATED_INTERNAL, change, current)

        log.info("release.state", state=ReleaseState.COMPUTING_VERSION.value)
        plan = ReleasePlan(
            ReleaseState.COMPUTING_VERSION, change, current, bump(change.directive, current)
        )
        log.info(
            "release.bumping",
            current=str(current),
            target=str(plan.target),
            directive=str(change.directive),
        )
        self._apply(plan)
        plan.state = ReleaseState.DONE
        log.info("release.state", state=ReleaseState.DONE.value, version=str(plan.target))
        return plan

    def _apply(self, plan: ReleasePlan) -> None:
        assert plan.target is not None
        options = self.options
        manifest = self.settings.manifest
        changelog = self.settings.changelog
        committing = options.should_push and not options.dry_run

        if committing:
            self._vcs.checkout(self.settings.branch)

        if options.dry_run:
            log.warning("release.dry_run", action="set manifest version", version=str(plan.target))
        else:
            write_manifest_version(manifest, plan.target)
            plan.changed_files.append(manifest)
            if committing:
                self._vcs.add(manifest)

        if options.changelog:
            try:
                written = self.append_changelog(plan.target, plan.change)
            except ChangelogError as exc:
                log.warning("release.changelog_skipped", path=str(changelog), error=str(exc))
            else:
                if written:
                    plan.changed_files.append(changelog)
                    if committing:
                        self._vcs.add(changelog)

        if committing:
            self._vcs.commit(release_commit_message(plan.target))
            self._vcs.tag(f"v{plan.target}")

    def append_changelog(self, version: Version, change: Change) -> bool:
        """Merge the entry for *change* into the changelog; False in dry-run."""
        path = self.settings.changelog
        lines = merge_changelog(
            read_changelog(path), version, change.event, change.directive, self.formatter
        )
        if self.options.dry_run:
            entry = self.formatter.entry(version, change.event, change.directive)
            log.warning("release.dry_run", action="append changelog", entry=entry)
            return False
        write_changelog(path, lines)
        return True

    def push(self) -> None:
        if self.options.dry_run:
            log.warning("release.dry_run", action="push", branch=self.settings.branch)
            return
        self._vcs.push(self.settings.branch)
        log.info("release.pushed", branch=self.settings.branch)

    def publish(self) -> None:
        if self.settings.private:
            log.warning("release.publish_skipped", reason="package is private")
            return
        if self.options.dry_run:
            log.warning("release.dry_run", action="publish", command=self.settings.publish_command)
            return
        self._vcs.shell(self.settings.publish_command)
        log.info("release.published")

    async def finish(self, plan: ReleasePlan) -> None:
        """Mark the released pull request with the released label, if configured."""
        event = plan.change.event
        if (
            not plan.released
            or not self.settings.add_released_label_on_success
            or not isinstance(event, PullRequestEvent)
            or self.options.dry_run
        ):
            return
        label = self.settings.released_label
        await self._fetch(f"label on PR #{event.number}", self._source.add_label(event.number, label))
        log.info("release.labelled", number=event.number, label=label)

    async def release(self) -> ReleasePlan:
        """Full CI release: increment, push, publish, finish."""
        plan = await self.increment()
        if not plan.released:
            return plan
        if self.options.should_push:
            self.push()
            if self.options.publish:
                self.publish()
        await self.finish(plan)
        return plan

    # ── full history ───────────────────────────────────────────────────────

    async def calculate_current_version(self) -> Version:
        timeline = await self._builder.build()
        return reduce_version(timeline, self.settings.start, self.classifier)

    async def changelog_lines(self) -> list[str]:
        timeline = await self._builder.build()
        return render_changelog(timeline, self.settings.start, self.classifier, self.formatter)

    async def refresh(self) -> RefreshResult:
        """Recompute the version and changelog from the whole history."""
        computed = await self.calculate_current_version()
        lines = await self.changelog_lines()
        current = read_manifest_version(self.settings.manifest)

        if current > computed:
            log.warning("refresh.version_ahead", current=str(current), computed=str(computed))
            return RefreshResult(computed, current, lines, in_sync=False, applied=False)

        in_sync = current == computed
        if in_sync:
            # Nothing new to tag; pushing is left to the user.
            log.warning("refresh.in_sync", version=str(computed))
        elif self.options.dry_run:
            log.warning("release.dry_run", action="set manifest version", version=str(computed))
        else:
            write_manifest_version(self.settings.manifest, computed)
            log.info("refresh.version_set", version=str(computed))

        if self.options.dry_run:
            log.warning("release.dry_run", action="write changelog", lines=len(lines))
        else:
            write_changelog(self.settings.changelog, lines)

        if self.options.should_push and not in_sync:
            self._commit_refreshed(computed)
            self.push()
            if self.options.publish:
                self.publish()

        return RefreshResult(computed, current, lines, in_sync=in_sync, applied=True)

    def _commit_refreshed(self, version: Version) -> None:
        if self.options.dry_run:
            log.warning("release.dry_run", action="commit refreshed changes", version=str(version))
            return
        self._vcs.checkout(self.settings.branch)
        self._vcs.add(self.settings.manifest, self.settings.changelog)
        self._vcs.commit(release_commit_message(version))
        self._vcs.tag(f"v{version}")

    # ── label check ────────────────────────────────────────────────────────

    async def check(self, number: int) -> Directive:
        """Fail unless PR *number* carries a recognised version label."""
        labels = await self._fetch(f"labels of PR #{number}", self._source.get_labels(number))
        directive = self.classifier.classify(labels)
        if directive is None:
            raise MissingLabelError(number, self.classifier.label_names)
        log.info("check.label_found", number=number, directive=str(directive))
        return directive

    # ── helpers ────────────────────────────────────────────────────────────

    @staticmethod
    async def _fetch(what: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except Exception as exc:
            raise DataSourceError(f"failed to fetch {what}: {exc}") from exc
