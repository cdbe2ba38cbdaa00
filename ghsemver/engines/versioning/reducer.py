"""Version reducer — fold a timeline into the repository's current version."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import NamedTuple

from ghsemver.engines.history.models import Event
from ghsemver.engines.versioning.labels import LabelClassifier
from ghsemver.engines.versioning.models import Directive, Version, bump


class VersionStep(NamedTuple):
    event: Event
    directive: Directive
    version: Version  # version after applying *directive*


def iter_versions(
    timeline: Sequence[Event],
    start: Version,
    classifier: LabelClassifier,
    *,
    fallback: Directive = Directive.NONE,
) -> Iterator[VersionStep]:
    """Yield the version reached after each event, oldest first.

    Unlabelled events use *fallback*. ``RELEASED`` only gates a release of
    the latest change; over full history it folds like ``NONE`` so later
    events are still counted.
    """
    version = start
    for event in timeline:
        directive = classifier.directive_for(event, fallback)
        if directive is Directive.RELEASED:
            version = bump(Directive.NONE, version)
        else:
            version = bump(directive, version)
        yield VersionStep(event, directive, version)


def reduce_version(
    timeline: Sequence[Event],
    start: Version,
    classifier: LabelClassifier,
    *,
    fallback: Directive = Directive.NONE,
) -> Version:
    version = start
    for step in iter_versions(timeline, start, classifier, fallback=fallback):
        version = step.version
    return version
