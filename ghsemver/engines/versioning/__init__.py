"""Versioning engine — label classification, version arithmetic and history folding."""

from ghsemver.engines.versioning.labels import LabelClassifier, LabelRule
from ghsemver.engines.versioning.models import Directive, Version, bump
from ghsemver.engines.versioning.reducer import VersionStep, iter_versions, reduce_version

__all__ = [
    "Directive",
    "LabelClassifier",
    "LabelRule",
    "Version",
    "VersionStep",
    "bump",
    "iter_versions",
    "reduce_version",
]
