"""Branch rule resolution."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flexvers.exceptions import ResolveError, ResolveErrorKind

if TYPE_CHECKING:
    from flexvers.core.rules import BranchRule, RuleTable

logger = logging.getLogger(__name__)


def matching_rules(branch: str, table: RuleTable) -> list[BranchRule]:
    """All configured rules whose pattern matches the branch, most specific first."""
    matches = [rule for rule in table.branches if rule.matches(branch)]
    return sorted(matches, key=lambda rule: rule.specificity, reverse=True)


def resolve_branch(branch: str, table: RuleTable) -> BranchRule:
    """Pick the single most specific rule for a branch.

    Args:
        branch: Current branch name
        table: Rule table of the run

    Returns:
        The winning rule, or the configured fallback rule when nothing
        matches

    Raises:
        ResolveError: If no rule matches and there is no fallback, or if the
            two most specific matches score the same
    """
    candidates = matching_rules(branch, table)

    if not candidates:
        if table.fallback is not None:
            logger.info("No branch rule matches %r, using the fallback rule", branch)
            return table.fallback
        raise ResolveError(
            f"No branch rule matches {branch!r}",
            ResolveErrorKind.NO_MATCHING_BRANCH,
            branch,
        )

    best = candidates[0]
    if len(candidates) > 1 and candidates[1].specificity == best.specificity:
        tied = [rule.pattern for rule in candidates if rule.specificity == best.specificity]
        raise ResolveError(
            f"Branch {branch!r} matches equally specific rules: {', '.join(tied)}",
            ResolveErrorKind.AMBIGUOUS_BRANCH_MATCH,
            branch,
        )

    logger.debug("Branch %r resolved to rule %r", branch, best.pattern)
    return best
