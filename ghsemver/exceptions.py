"""Custom exceptions for ghsemver."""


class GhSemverError(Exception):
    """Base exception for all ghsemver errors."""


class ConfigError(GhSemverError):
    """Raised when the ``[tool.ghsemver]`` configuration is invalid."""


class DataSourceError(GhSemverError):
    """Raised when pull request, commit or label data cannot be fetched."""


class InvalidDirectiveError(GhSemverError):
    """Raised when a value that is not a Directive reaches version arithmetic."""

    def __init__(self, directive: object):
        self.directive = directive
        super().__init__(f"invalid increment directive: {directive!r}")


class VersionParseError(GhSemverError, ValueError):
    """Raised when a version string is not ``major.minor.patch``."""


class MissingLabelError(GhSemverError):
    """Raised by the label check when a pull request carries no recognised label."""

    def __init__(self, number: int, expected: list[str]):
        self.number = number
        self.expected = expected
        super().__init__(
            f"Required label not found on PR #{number}, must be one of: {', '.join(expected)}"
        )


class ChangelogError(GhSemverError):
    """Base exception for changelog merge failures."""


class NoExistingChangelogError(ChangelogError):
    """Raised when the changelog to append to is missing or empty."""


class MalformedChangelogError(ChangelogError):
    """Raised when the changelog does not start with a header and a dated heading."""


class CommandError(GhSemverError):
    """Raised when a git or packaging command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"command failed: {command}: {detail}")
