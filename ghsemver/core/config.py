"""Configuration loading — ``[tool.ghsemver]`` in pyproject.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ghsemver.engines.versioning.models import Version
from ghsemver.exceptions import ConfigError

_TOOL_KEY = "ghsemver"


class _Model(BaseModel):
    # camelCase keys (majorLabel, abortOnMissingLabel, ...) are accepted too.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class GitHubSettings(_Model):
    repository: str | None = None  # "owner/repo"; read from the git remote when unset
    api_url: str = "https://api.github.com"
    token: str | None = Field(default=None, exclude=True)
    concurrency: int = Field(default=8, ge=1)

    def resolved_token(self) -> str | None:
        return self.token or os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN")


class Settings(_Model):
    major_label: str = "Version: Major"
    minor_label: str = "Version: Minor"
    patch_label: str = "Version: Patch"
    internal_label: str = "No version: Internal"
    released_label: str = "Released"
    start_version: str = "0.0.0"
    abort_on_missing_label: bool = False
    add_released_label_on_success: bool = False
    branch: str = "main"
    changelog: Path = Path("CHANGELOG.md")
    manifest: Path = Path("pyproject.toml")
    private: bool = False
    publish_command: str = "python -m build && twine upload dist/*"
    github: GitHubSettings = Field(default_factory=GitHubSettings)

    @field_validator("start_version")
    @classmethod
    def _check_start_version(cls, value: str) -> str:
        Version.parse(value)
        return value

    @property
    def start(self) -> Version:
        return Version.parse(self.start_version)


@dataclass
class Options:
    """Per-invocation flags, as opposed to per-project settings."""

    dry_run: bool = False
    push: bool = False
    publish: bool = False
    changelog: bool = False
    init: bool = False

    @property
    def should_push(self) -> bool:
        return self.push or self.publish


def load_settings(project_path: Path) -> Settings:
    """Read ``[tool.ghsemver]`` from *project_path*/pyproject.toml.

    A missing file or section yields the defaults. Raises ConfigError on
    unparseable TOML or invalid values.
    """
    pyproject = project_path / "pyproject.toml"
    raw: dict[str, Any] = {}
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"cannot parse {pyproject}: {exc}") from exc
        raw = data.get("tool", {}).get(_TOOL_KEY, {})

    try:
        settings = Settings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid [tool.{_TOOL_KEY}] configuration: {exc}") from exc

    settings.changelog = project_path / settings.changelog
    settings.manifest = project_path / settings.manifest
    return settings
