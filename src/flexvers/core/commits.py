"""Commit classification.

Each commit message is mapped to a bump level using the rule table:

- The type token is the conventional-commit type (``feat`` in
  ``feat(api)!: ...``); for messages without that header it is the first
  word of the message.
- The token is looked up in ``commits.map``. Tokens that are not mapped
  fall back to ``commits.default``. This fallback is deliberate: a noisy
  history never makes classification fail.
- ``!`` before the colon, or a ``BREAKING CHANGE:`` footer, is MAJOR.
- Release and prerelease markers are searched across the whole message.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from flexvers.core.version import BumpLevel

if TYPE_CHECKING:
    from flexvers.core.rules import RuleTable
    from flexvers.vcs.git import Commit

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(
    r"^\s*(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scope>[^)]*)\))?"
    r"(?P<bang>!)?:"
)
BREAKING_PATTERN = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying a single commit.

    Attributes:
        level: Bump level the commit asks for
        is_prerelease: A prerelease marker occurs in the message
        is_release: A release marker occurs in the message
        is_formatted: The message has a conventional-commit header
        commit_type: The type token that was looked up
    """

    level: BumpLevel
    is_prerelease: bool = False
    is_release: bool = False
    is_formatted: bool = True
    commit_type: str | None = None


@lru_cache(maxsize=32)
def _marker_pattern(markers: frozenset[str], case_sensitive: bool) -> re.Pattern[str] | None:
    if not markers:
        return None
    alternatives = "|".join(re.escape(m) for m in sorted(markers, key=len, reverse=True))
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(rf"(?<![\w-])(?:{alternatives})(?![\w-])", flags)


def contains_marker(message: str, markers: frozenset[str], case_sensitive: bool) -> bool:
    """Whether any marker occurs in the message as a standalone word."""
    pattern = _marker_pattern(markers, case_sensitive)
    return pattern is not None and pattern.search(message) is not None


def extract_type_token(message: str) -> tuple[str | None, bool, bool]:
    """Extract the type token of a commit message.

    Returns:
        Tuple of (token, is_formatted, is_breaking_header). The token is
        None for an empty message.
    """
    match = HEADER_PATTERN.match(message)
    if match:
        return match.group("type"), True, match.group("bang") is not None

    words = message.split()
    if not words:
        return None, False, False
    return words[0].rstrip(":"), False, False


def classify_message(
    message: str,
    table: RuleTable,
    *,
    skip_non_formatted: bool = False,
) -> Classification:
    """Classify a raw commit message. See :func:`classify_commit`."""
    rules = table.commits
    token, is_formatted, bang = extract_type_token(message)

    if not is_formatted and skip_non_formatted:
        return Classification(BumpLevel.NONE, is_formatted=False, commit_type=token)

    mapped = rules.level_for(token) if token else None
    if mapped is None:
        level = rules.default
        logger.debug("No rule for commit type %r, using default %s", token, level)
    else:
        level = mapped

    if bang or BREAKING_PATTERN.search(message):
        level = BumpLevel.MAJOR

    return Classification(
        level=level,
        is_prerelease=contains_marker(message, rules.prerelease, rules.case_sensitive),
        is_release=contains_marker(message, rules.release, rules.case_sensitive),
        is_formatted=is_formatted,
        commit_type=rules.normalize(token) if token else None,
    )


def classify_commit(
    commit: Commit,
    table: RuleTable,
    *,
    skip_non_formatted: bool = False,
) -> Classification:
    """Classify one commit into a bump level and release markers.

    Args:
        commit: Commit to classify
        table: Rule table of the run
        skip_non_formatted: Classify messages without a conventional
            header as NONE instead of the default level

    Returns:
        The classification; this never raises for odd messages
    """
    return classify_message(commit.message, table, skip_non_formatted=skip_non_formatted)


def classify_commits(
    commits: Iterable[Commit],
    table: RuleTable,
    *,
    skip_non_formatted: bool = False,
) -> list[tuple[Commit, Classification]]:
    """Classify a sequence of commits, keeping their order."""
    return [
        (commit, classify_commit(commit, table, skip_non_formatted=skip_non_formatted))
        for commit in commits
    ]
