"""Pydantic models of the flexvers configuration document.

These models describe the document exactly as it is committed
(``.semver.json`` or ``[tool.flexvers]``). They only check shape and
types; cross-field policy checks (ambiguous branch patterns, overlapping
keywords, unknown providers) happen when the document is compiled into a
rule table by :func:`flexvers.core.rules.load_rule_table`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flexvers.core.version import BumpLevel


def _parse_increment_level(value: Any) -> BumpLevel:
    level = BumpLevel.parse(value) if isinstance(value, str) else BumpLevel(value)
    if level is BumpLevel.NONE:
        raise ValueError("NONE is not a valid increment level")
    return level


def _parse_increment_list(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = [value]
    return [_parse_increment_level(item) for item in value]


class _DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class ProviderConfig(_DocumentModel):
    """Settings for one hosting provider under ``tagging.supported_repositories``."""

    enabled: bool = False
    release: bool = Field(
        default=True,
        description="Create a hosted release next to the tag when the provider supports it",
    )
    api_url: str | None = Field(default=None, description="API base URL override (self-hosted)")
    repository: str | None = Field(
        default=None,
        description="Repository slug (owner/name); detected from CI or the remote when unset",
    )


class TaggingConfig(_DocumentModel):
    """Tag naming and provider gating."""

    prefix: str = "v"
    prerelease_label: str = Field(
        default="pre", alias="prereleaseLabel", pattern=r"^[0-9A-Za-z-]+$"
    )
    supported_repositories: dict[str, ProviderConfig] = Field(default_factory=dict)

    @field_validator("supported_repositories", mode="before")
    @classmethod
    def _lowercase_provider_names(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(name).lower(): settings for name, settings in value.items()}
        return value


class BranchConfig(_DocumentModel):
    """One entry of ``branches[]``."""

    name: str = Field(min_length=1)
    increment: list[BumpLevel] | None = None
    prerelease: bool = False

    @field_validator("increment", mode="before")
    @classmethod
    def _parse_increment(cls, value: Any) -> Any:
        return _parse_increment_list(value)


class FallbackBranchConfig(_DocumentModel):
    """Rule applied when no ``branches[]`` pattern matches the current branch."""

    increment: list[BumpLevel] | None = None
    prerelease: bool = False

    @field_validator("increment", mode="before")
    @classmethod
    def _parse_increment(cls, value: Any) -> Any:
        return _parse_increment_list(value)


class CommitsConfig(_DocumentModel):
    """Commit classification settings."""

    default: BumpLevel = BumpLevel.PATCH
    case_sensitive: bool = Field(default=False, alias="caseSensitive")
    release: list[str] = Field(default_factory=list)
    prerelease: list[str] = Field(default_factory=list)
    map: dict[BumpLevel, list[str]] = Field(default_factory=dict)

    @field_validator("default", mode="before")
    @classmethod
    def _parse_default(cls, value: Any) -> Any:
        return _parse_increment_level(value)

    @field_validator("map", mode="before")
    @classmethod
    def _parse_map_levels(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {_parse_increment_level(level): keywords for level, keywords in value.items()}


class FlexversConfig(_DocumentModel):
    """Root of the configuration document."""

    tagging: TaggingConfig = Field(default_factory=TaggingConfig)
    branches: list[BranchConfig] = Field(default_factory=list)
    fallback_branch: FallbackBranchConfig | None = Field(default=None, alias="fallbackBranch")
    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    version_files: list[Path] = Field(default_factory=list, alias="versionFiles")

    @property
    def enabled_providers(self) -> list[str]:
        providers = self.tagging.supported_repositories
        return [name for name, settings in providers.items() if settings.enabled]
