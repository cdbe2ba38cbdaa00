"""Release engine — gating, version bump and working-tree side effects."""

from ghsemver.engines.release.manifest import read_manifest_version, write_manifest_version
from ghsemver.engines.release.orchestrator import (
    Change,
    RefreshResult,
    ReleaseOrchestrator,
    ReleasePlan,
    ReleaseState,
    release_commit_message,
)
from ghsemver.engines.release.vcs import GitRunner, pull_request_number_from_subject

__all__ = [
    "Change",
    "GitRunner",
    "RefreshResult",
    "ReleaseOrchestrator",
    "ReleasePlan",
    "ReleaseState",
    "pull_request_number_from_subject",
    "read_manifest_version",
    "release_commit_message",
    "write_manifest_version",
]
