"""Read and write the version stored in pyproject.toml.

Writing uses a targeted regex on the ``[project]`` table so formatting and
comments survive; reading goes through a real TOML parser.
"""

from __future__ import annotations

import re
import sys
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ghsemver.engines.versioning.models import Version
from ghsemver.exceptions import ConfigError

_PROJECT_TABLE_RE = re.compile(r"^\[project\].*?(?=^\[|\Z)", re.MULTILINE | re.DOTALL)
_VERSION_LINE_RE = re.compile(r'^(version\s*=\s*)["\'][^"\']*["\']', re.MULTILINE)


def read_manifest_version(path: Path) -> Version:
    if not path.is_file():
        raise ConfigError(f"manifest not found: {path}")
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"cannot parse {path}: {exc}") from exc
    version = data.get("project", {}).get("version")
    if not isinstance(version, str):
        raise ConfigError(f"no [project].version in {path}")
    return Version.parse(version)


def write_manifest_version(path: Path, version: Version) -> None:
    content = path.read_text(encoding="utf-8")
    table = _PROJECT_TABLE_RE.search(content)
    if table is None or not _VERSION_LINE_RE.search(table.group(0)):
        raise ConfigError(f"no [project].version to update in {path}")

    section = _VERSION_LINE_RE.sub(rf'\g<1>"{version}"', table.group(0), count=1)
    path.write_text(content[: table.start()] + section + content[table.end() :], encoding="utf-8")
