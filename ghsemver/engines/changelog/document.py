"""Reading and writing the changelog file."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from ghsemver.exceptions import NoExistingChangelogError


def read_changelog(path: Path) -> list[str]:
    if not path.is_file():
        raise NoExistingChangelogError(f"no changelog found at {path}")
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        raise NoExistingChangelogError(f"changelog at {path} is empty")
    return text.splitlines()


def write_changelog(path: Path, lines: Sequence[str]) -> None:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
