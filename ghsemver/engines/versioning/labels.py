"""Label classifier — maps pull request labels to one increment directive."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from ghsemver.engines.versioning.models import Directive

if TYPE_CHECKING:
    from ghsemver.core.config import Settings
    from ghsemver.engines.history.models import Event

LabelRule = tuple[str, Directive]


class LabelClassifier:
    """Evaluate labels against an ordered list of ``(label_text, directive)`` rules.

    Rules are checked in order and the first rule matched by *any* label wins,
    so precedence does not depend on the order labels were applied in. A label
    matches a rule when it starts with the rule's text (case-sensitive), which
    allows annotated labels such as ``"Version: Minor (api)"``.
    """

    def __init__(self, rules: Iterable[LabelRule]) -> None:
        self.rules: tuple[LabelRule, ...] = tuple(rules)

    @classmethod
    def from_settings(cls, settings: Settings) -> LabelClassifier:
        return cls(
            [
                (settings.major_label, Directive.MAJOR),
                (settings.minor_label, Directive.MINOR),
                (settings.patch_label, Directive.PATCH),
                (settings.internal_label, Directive.NONE),
                (settings.released_label, Directive.RELEASED),
            ]
        )

    @property
    def label_names(self) -> list[str]:
        return [text for text, _ in self.rules]

    def classify(self, labels: Iterable[str] | None) -> Directive | None:
        """Return the directive for *labels*, or None if none is recognised."""
        if not labels:
            return None
        names = list(labels)
        for text, directive in self.rules:
            if any(name.startswith(text) for name in names):
                return directive
        return None

    def directive_for(self, event: Event, fallback: Directive) -> Directive:
        directive = self.classify(event.labels)
        return fallback if directive is None else directive
