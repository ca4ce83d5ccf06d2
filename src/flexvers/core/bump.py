"""Folding a commit range into one effective bump."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flexvers.core.commits import classify_commit
from flexvers.core.version import BumpLevel

if TYPE_CHECKING:
    from flexvers.core.rules import BranchRule, RuleTable
    from flexvers.vcs.git import Commit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveBump:
    """Bump decided for a whole commit range on one branch.

    Attributes:
        level: Bump level after the branch clamp
        prerelease: Whether the next version is a prerelease
        release: Whether a hosted release was requested
        requested: Highest level the commits asked for, before the clamp
    """

    level: BumpLevel = BumpLevel.NONE
    prerelease: bool = False
    release: bool = False
    requested: BumpLevel = BumpLevel.NONE


def aggregate_bump(
    commits: Iterable[Commit],
    rule: BranchRule,
    table: RuleTable,
    *,
    force_release: bool = False,
    force_prerelease: bool = False,
    skip_non_formatted: bool = False,
) -> EffectiveBump:
    """Classify a commit range and fold it into one bump.

    The level is the highest classified level, clamped to what the branch
    permits: the result is the highest level in ``rule.increment`` that
    does not exceed it, or NONE when no permitted level qualifies. A
    commit may ask for MAJOR; a PATCH-only branch still bumps PATCH.

    Prerelease and release markers are "any commit wins".

    Args:
        commits: Commits since the last release tag
        rule: Resolved branch rule
        table: Rule table of the run
        force_release: Never mark the version as a prerelease
        force_prerelease: Always mark the version as a prerelease
        skip_non_formatted: Ignore commits without a conventional header

    Raises:
        ValueError: If both force flags are set
    """
    if force_release and force_prerelease:
        raise ValueError("force_release and force_prerelease are mutually exclusive")

    requested = BumpLevel.NONE
    any_prerelease = False
    any_release = False

    for commit in commits:
        result = classify_commit(commit, table, skip_non_formatted=skip_non_formatted)
        requested = max(requested, result.level)
        any_prerelease = any_prerelease or result.is_prerelease
        any_release = any_release or result.is_release

    level = rule.clamp(requested)
    if level is not requested:
        logger.info(
            "Branch rule %r permits %s, clamping %s to %s",
            rule.pattern,
            ", ".join(str(lvl) for lvl in sorted(rule.increment)),
            requested,
            level,
        )

    if force_release:
        prerelease = False
    elif force_prerelease:
        prerelease = True
    else:
        prerelease = rule.prerelease or any_prerelease

    return EffectiveBump(
        level=level,
        prerelease=prerelease,
        release=any_release or force_release,
        requested=requested,
    )
