"""Git and packaging commands run against the local working tree."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

import structlog

from ghsemver.core.github import parse_repo_url
from ghsemver.exceptions import CommandError

log = structlog.get_logger("ghsemver.vcs")

# "Merge pull request #12 from ..." (merge commit) or "Title (#12)" (squash merge)
_PR_SUBJECT_PATTERNS = (
    re.compile(r"^Merge pull request #(\d+)"),
    re.compile(r"\(#(\d+)\)\s*$"),
)


def pull_request_number_from_subject(subject: str) -> int | None:
    for pattern in _PR_SUBJECT_PATTERNS:
        match = pattern.search(subject)
        if match:
            return int(match.group(1))
    return None


class GitRunner:
    """Runs commands in *path* and returns their captured stdout lines."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def run(self, args: list[str]) -> list[str]:
        log.debug("vcs.run", command=args)
        result = subprocess.run(args, cwd=self.path, capture_output=True, text=True, check=False)
        return self._complete(args, result)

    def shell(self, command: str) -> list[str]:
        """Run *command* through the shell, e.g. a configured publish command."""
        log.debug("vcs.shell", command=command)
        result = subprocess.run(
            command, shell=True, cwd=self.path, capture_output=True, text=True, check=False
        )
        return self._complete(command, result)

    @staticmethod
    def _complete(command: list[str] | str, result: subprocess.CompletedProcess[str]) -> list[str]:
        if result.returncode != 0:
            shown = command if isinstance(command, str) else " ".join(command)
            raise CommandError(shown, result.returncode, result.stderr or "")
        return result.stdout.splitlines()

    # ── queries ────────────────────────────────────────────────────────────

    def current_branch(self) -> str:
        return self.run(["git", "rev-parse", "--abbrev-ref", "HEAD"])[0].strip()

    def last_commit_sha(self) -> str:
        return self.run(["git", "rev-parse", "HEAD"])[0].strip()

    def last_pull_request_number(self) -> int | None:
        """Number of the PR merged by HEAD, or None if HEAD is a plain commit."""
        lines = self.run(["git", "log", "-n", "1", "--format=%s"])
        return pull_request_number_from_subject(lines[0]) if lines else None

    def remote_slug(self, remote: str = "origin") -> tuple[str, str]:
        url = self.run(["git", "remote", "get-url", remote])[0]
        return parse_repo_url(url)

    # ── mutations ──────────────────────────────────────────────────────────

    def checkout(self, branch: str) -> None:
        self.run(["git", "checkout", branch])

    def add(self, *paths: Path) -> None:
        self.run(["git", "add", *(str(p) for p in paths)])

    def commit(self, message: str) -> None:
        self.run(["git", "commit", "-m", message])

    def tag(self, name: str) -> None:
        self.run(["git", "tag", name])

    def push(self, branch: str, remote: str = "origin") -> None:
        self.run(["git", "push", remote, branch, "--tags"])
