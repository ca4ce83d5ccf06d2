"""Immutable rule table compiled from the configuration document.

The document is validated and converted once per run. Anything the engine
would otherwise have to guess about is rejected here with a
:class:`~flexvers.exceptions.ConfigError`:

- two branch patterns that are equally specific and can match the same name
- a keyword mapped to more than one bump level, or used both as a release
  and a prerelease marker
- a provider section with no matching adapter
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import cache, cached_property
from itertools import combinations
from types import MappingProxyType
from typing import TYPE_CHECKING

from flexvers.core.version import DEFAULT_PRERELEASE_LABEL, BumpLevel
from flexvers.exceptions import ConfigError, ConfigErrorKind

if TYPE_CHECKING:
    from flexvers.config.models import FlexversConfig, ProviderConfig

WILDCARD = "*"
ALL_INCREMENTS = frozenset({BumpLevel.PATCH, BumpLevel.MINOR, BumpLevel.MAJOR})


@dataclass(frozen=True)
class BranchRule:
    """A branch-name pattern and the versioning policy it grants.

    Attributes:
        pattern: Branch name, ``*`` matches any run of characters
        increment: Bump levels this branch may apply
        prerelease: Whether versions computed on this branch are prereleases
    """

    pattern: str
    increment: frozenset[BumpLevel] = ALL_INCREMENTS
    prerelease: bool = False

    @cached_property
    def _regex(self) -> re.Pattern[str]:
        parts = (re.escape(part) for part in self.pattern.split(WILDCARD))
        return re.compile(".*".join(parts), re.DOTALL)

    def matches(self, branch: str) -> bool:
        return self._regex.fullmatch(branch) is not None

    @property
    def specificity(self) -> tuple[int, int, int]:
        """Score used to pick among matching rules, higher is more specific.

        Ordered by literal character count, then fewer wildcards, then the
        length of the literal prefix.
        """
        wildcards = self.pattern.count(WILDCARD)
        literal = len(self.pattern) - wildcards
        prefix = self.pattern.find(WILDCARD)
        return (literal, -wildcards, literal if prefix < 0 else prefix)

    def clamp(self, level: BumpLevel) -> BumpLevel:
        """Highest permitted level not above ``level``; NONE when none qualifies."""
        permitted = [allowed for allowed in self.increment if allowed <= level]
        return max(permitted, default=BumpLevel.NONE)


@dataclass(frozen=True)
class CommitRules:
    """Commit classification policy.

    Keyword lookups are normalised with :meth:`normalize`, which case-folds
    unless the table is case sensitive.
    """

    default: BumpLevel = BumpLevel.PATCH
    case_sensitive: bool = False
    release: frozenset[str] = frozenset()
    prerelease: frozenset[str] = frozenset()
    keywords: Mapping[str, BumpLevel] = field(default_factory=lambda: MappingProxyType({}))

    def normalize(self, token: str) -> str:
        return token if self.case_sensitive else token.casefold()

    def level_for(self, token: str) -> BumpLevel | None:
        return self.keywords.get(self.normalize(token))


@dataclass(frozen=True)
class RuleTable:
    """Everything the decision engine needs from the configuration."""

    branches: tuple[BranchRule, ...] = ()
    commits: CommitRules = field(default_factory=CommitRules)
    providers: Mapping[str, ProviderConfig] = field(default_factory=lambda: MappingProxyType({}))
    fallback: BranchRule | None = None
    tag_prefix: str = "v"
    prerelease_label: str = DEFAULT_PRERELEASE_LABEL

    def provider_enabled(self, name: str) -> bool:
        settings = self.providers.get(name)
        return settings is not None and settings.enabled


def patterns_overlap(first: str, second: str) -> bool:
    """Whether some branch name matches both glob patterns."""

    @cache
    def overlap(i: int, j: int) -> bool:
        if i == len(first) and j == len(second):
            return True
        if i < len(first) and first[i] == WILDCARD:
            return overlap(i + 1, j) or (j < len(second) and overlap(i, j + 1))
        if j < len(second) and second[j] == WILDCARD:
            return overlap(i, j + 1) or (i < len(first) and overlap(i + 1, j))
        if i < len(first) and j < len(second) and first[i] == second[j]:
            return overlap(i + 1, j + 1)
        return False

    return overlap(0, 0)


def _compile_branches(config: FlexversConfig) -> tuple[BranchRule, ...]:
    rules = tuple(
        BranchRule(
            pattern=branch.name,
            increment=frozenset(branch.increment) if branch.increment else ALL_INCREMENTS,
            prerelease=branch.prerelease,
        )
        for branch in config.branches
    )

    for first, second in combinations(rules, 2):
        if first.pattern == second.pattern:
            raise ConfigError(
                f"Branch pattern {first.pattern!r} is configured more than once",
                ConfigErrorKind.AMBIGUOUS_RULE,
            )
        if first.specificity == second.specificity and patterns_overlap(
            first.pattern, second.pattern
        ):
            raise ConfigError(
                f"Branch patterns {first.pattern!r} and {second.pattern!r} are equally "
                "specific and can match the same branch",
                ConfigErrorKind.AMBIGUOUS_RULE,
            )
    return rules


def _compile_commits(config: FlexversConfig) -> CommitRules:
    commits = config.commits
    normalize = (lambda s: s) if commits.case_sensitive else str.casefold

    keywords: dict[str, BumpLevel] = {}
    for level, tokens in commits.map.items():
        for token in tokens:
            key = normalize(token.strip())
            if not key:
                continue
            existing = keywords.get(key)
            if existing is not None and existing is not level:
                raise ConfigError(
                    f"Commit keyword {token!r} is mapped to both {existing} and {level}",
                    ConfigErrorKind.OVERLAPPING_KEYWORD,
                )
            keywords[key] = level

    release = frozenset(normalize(k.strip()) for k in commits.release if k.strip())
    prerelease = frozenset(normalize(k.strip()) for k in commits.prerelease if k.strip())
    both = release & prerelease
    if both:
        raise ConfigError(
            f"Keywords used as both release and prerelease markers: {', '.join(sorted(both))}",
            ConfigErrorKind.OVERLAPPING_KEYWORD,
        )

    return CommitRules(
        default=commits.default,
        case_sensitive=commits.case_sensitive,
        release=release,
        prerelease=prerelease,
        keywords=MappingProxyType(keywords),
    )


def load_rule_table(
    config: FlexversConfig,
    known_providers: Iterable[str] | None = None,
) -> RuleTable:
    """Compile a configuration document into a rule table.

    Args:
        config: Parsed configuration document
        known_providers: Provider names with an adapter, defaults to the
            registered adapters

    Raises:
        ConfigError: If the rules are ambiguous, overlap, or name an
            unknown provider
    """
    if known_providers is None:
        from flexvers.providers import PROVIDERS

        known_providers = PROVIDERS
    known = set(known_providers)

    unknown = sorted(set(config.tagging.supported_repositories) - known)
    if unknown:
        raise ConfigError(
            f"Unsupported repository type(s): {', '.join(unknown)}. "
            f"Supported: {', '.join(sorted(known))}",
            ConfigErrorKind.UNKNOWN_PROVIDER,
        )

    fallback = None
    if config.fallback_branch is not None:
        fallback = BranchRule(
            pattern=WILDCARD,
            increment=frozenset(config.fallback_branch.increment or ALL_INCREMENTS),
            prerelease=config.fallback_branch.prerelease,
        )

    return RuleTable(
        branches=_compile_branches(config),
        commits=_compile_commits(config),
        providers=MappingProxyType(dict(config.tagging.supported_repositories)),
        fallback=fallback,
        tag_prefix=config.tagging.prefix,
        prerelease_label=config.tagging.prerelease_label,
    )
