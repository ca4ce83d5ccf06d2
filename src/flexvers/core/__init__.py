"""Core business logic for flexvers.

This module contains the version-decision engine:
- Semantic version model and next-version calculation
- Rule table compiled from the configuration
- Commit classification and branch rule resolution
- Folding a commit range into one effective bump
- Release planning for the current HEAD
"""

from __future__ import annotations

from flexvers.core.branches import resolve_branch
from flexvers.core.bump import EffectiveBump, aggregate_bump
from flexvers.core.commits import Classification, classify_commit, classify_message
from flexvers.core.rules import BranchRule, CommitRules, RuleTable, load_rule_table
from flexvers.core.version import BumpLevel, Version, next_version, parse_version

__all__ = [
    # Version
    "BumpLevel",
    "Version",
    "next_version",
    "parse_version",
    # Rules
    "BranchRule",
    "CommitRules",
    "RuleTable",
    "load_rule_table",
    # Decision
    "Classification",
    "EffectiveBump",
    "aggregate_bump",
    "classify_commit",
    "classify_message",
    "resolve_branch",
]
