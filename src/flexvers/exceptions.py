"""Exception hierarchy for flexvers.

Every error carries the process exit code the CLI reports for it, so CI
can tell a policy misconfiguration apart from a genuine version conflict:

- ``ConfigError`` (3): the configuration document is missing, malformed,
  or contains ambiguous rules. Raised before git or the network is touched.
- ``ResolveError`` (4): the current branch matches no rule, or several.
- ``PublishError`` (5 for conflicts, 6 otherwise): the hosting provider
  refused or failed the tag operation.
- ``GitError`` (7): a git command failed.
"""

from __future__ import annotations

from enum import StrEnum


class FlexversError(Exception):
    """Base exception for all flexvers errors."""

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# =============================================================================
# Configuration
# =============================================================================


class ConfigErrorKind(StrEnum):
    """Reasons a configuration document is rejected."""

    AMBIGUOUS_RULE = "ambiguous-rule"
    OVERLAPPING_KEYWORD = "overlapping-keyword"
    UNKNOWN_PROVIDER = "unknown-provider"
    PROVIDER_DISABLED = "provider-disabled"
    INVALID_DOCUMENT = "invalid-document"
    CONFIG_NOT_FOUND = "config-not-found"


class ConfigError(FlexversError):
    """The configuration cannot be turned into a rule table."""

    exit_code = 3

    def __init__(self, message: str, kind: ConfigErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


class ConfigNotFoundError(ConfigError):
    """No configuration document was found."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ConfigErrorKind.CONFIG_NOT_FOUND)


class ConfigValidationError(ConfigError):
    """The configuration document does not match the expected schema."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ConfigErrorKind.INVALID_DOCUMENT)


# =============================================================================
# Branch resolution
# =============================================================================


class ResolveErrorKind(StrEnum):
    """Reasons a branch cannot be mapped to a rule."""

    NO_MATCHING_BRANCH = "no-matching-branch"
    AMBIGUOUS_BRANCH_MATCH = "ambiguous-branch-match"


class ResolveError(FlexversError):
    """The current branch does not resolve to exactly one rule."""

    exit_code = 4

    def __init__(self, message: str, kind: ResolveErrorKind, branch: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.branch = branch


# =============================================================================
# Publishing
# =============================================================================


class PublishErrorKind(StrEnum):
    """Failure classes of a provider call."""

    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate-limited"
    NETWORK_FAILURE = "network-failure"
    CONFLICT = "conflict"
    PROVIDER_ERROR = "provider-error"


class PublishError(FlexversError):
    """A tag could not be published.

    ``CONFLICT`` means the tag already points at a different commit and
    ``PROVIDER_ERROR`` an unexpected provider response; neither is retried.
    The other kinds may be retried by the caller with backoff.
    """

    exit_code = 6

    def __init__(
        self,
        message: str,
        kind: PublishErrorKind,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        if kind is PublishErrorKind.CONFLICT:
            self.exit_code = 5

    @property
    def retryable(self) -> bool:
        return self.kind not in (PublishErrorKind.CONFLICT, PublishErrorKind.PROVIDER_ERROR)


class TagAlreadyExistsError(PublishError):
    """The provider rejected tag creation because the name is taken.

    Raised by provider adapters; the publisher re-reads the tag to decide
    between an idempotent success and a conflict.
    """

    def __init__(self, tag_name: str, *, status_code: int | None = None) -> None:
        super().__init__(
            f"Tag {tag_name} already exists",
            PublishErrorKind.CONFLICT,
            status_code=status_code,
        )
        self.tag_name = tag_name


# =============================================================================
# Git and project files
# =============================================================================


class GitError(FlexversError):
    """A git command failed."""

    exit_code = 7

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}: {self.stderr.strip()}"
        return self.message


class ProjectError(FlexversError):
    """A project file could not be updated."""


class VersionNotFoundError(ProjectError):
    """No version declaration was found in a project file."""
