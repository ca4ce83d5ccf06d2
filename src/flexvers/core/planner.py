"""Release planning: from repository state to the version to publish.

The baseline is the highest release tag reachable from HEAD, ignoring
tags on HEAD itself. When HEAD already carries a tag with the computed core
and release state, that tag's version is reused even if prereleases cut
elsewhere since then advanced the counter. A re-run on an already tagged
commit therefore recomputes the same version, and publishing it is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from flexvers.core.branches import resolve_branch
from flexvers.core.bump import EffectiveBump, aggregate_bump
from flexvers.core.commits import classify_commits
from flexvers.core.notes import render_release_notes
from flexvers.core.version import BumpLevel, Version, next_version

if TYPE_CHECKING:
    from flexvers.core.rules import BranchRule, RuleTable
    from flexvers.vcs.git import Commit, GitRepository

logger = logging.getLogger(__name__)

INITIAL_VERSION = Version(0, 0, 0)


@dataclass(frozen=True)
class ReleasePlan:
    """Everything decided for one run, before anything is published."""

    branch: str
    rule: BranchRule
    head: str
    previous: Version
    previous_tag: str | None
    bump: EffectiveBump
    version: Version
    commits: list[Commit] = field(default_factory=list)
    notes: str = ""

    @property
    def should_publish(self) -> bool:
        return self.bump.level is not BumpLevel.NONE


def _tagged_on_head(version: Version, on_head: list[Version], label: str) -> Version | None:
    """A version HEAD already carries with the same core and release state."""
    matches = [
        seen
        for seen in on_head
        if seen.core == version.core
        and (
            seen.prerelease_number(label) is not None
            if version.is_prerelease
            else not seen.is_prerelease
        )
    ]
    return max(matches, default=None)


def plan_release(
    repo: GitRepository,
    table: RuleTable,
    *,
    branch: str | None = None,
    force_release: bool = False,
    force_prerelease: bool = False,
    skip_non_formatted: bool = False,
) -> ReleasePlan:
    """Compute the next version for HEAD.

    Args:
        repo: Repository to read
        table: Rule table of the run
        branch: Branch name override (defaults to the checked-out branch)
        force_release: Never produce a prerelease
        force_prerelease: Always produce a prerelease
        skip_non_formatted: Ignore commits without a conventional header

    Raises:
        ResolveError: If the branch does not resolve to a rule
        GitError: If reading the repository fails
    """
    prefix = table.tag_prefix
    head = repo.head_sha()
    branch = branch or repo.current_branch()
    rule = resolve_branch(branch, table)

    baseline = repo.get_latest_tag(prefix, exclude_commit=head)
    previous = baseline.version if baseline else INITIAL_VERSION
    commits = repo.get_commits_since_tag(baseline.name if baseline else None)
    logger.info(
        "Branch %s, %d commit(s) since %s",
        branch,
        len(commits),
        baseline.name if baseline else "the first commit",
    )

    bump = aggregate_bump(
        commits,
        rule,
        table,
        force_release=force_release,
        force_prerelease=force_prerelease,
        skip_non_formatted=skip_non_formatted,
    )

    all_tags = repo.get_version_tags(prefix)
    on_head = [tag.version for tag in all_tags if tag.commit == head]
    tags = [tag for tag in all_tags if tag.commit != head]
    reachable = {tag.name for tag in repo.get_version_tags(prefix, merged=True)}
    lineage = [tag.version for tag in tags if tag.name in reachable and tag.version > previous]
    taken = [tag.version for tag in tags if tag.name not in reachable]

    version = next_version(
        previous,
        bump,
        published=lineage,
        taken=taken,
        label=table.prerelease_label,
    )
    if bump.level is not BumpLevel.NONE:
        existing = _tagged_on_head(version, on_head, table.prerelease_label)
        if existing is not None:
            logger.info("HEAD is already tagged as %s", existing.tag_name(prefix))
            version = existing

    notes = ""
    if bump.level is not BumpLevel.NONE:
        classified = classify_commits(commits, table, skip_non_formatted=skip_non_formatted)
        notes = render_release_notes(version, classified, tag_prefix=prefix)

    return ReleasePlan(
        branch=branch,
        rule=rule,
        head=head,
        previous=previous,
        previous_tag=baseline.name if baseline else None,
        bump=bump,
        version=version,
        commits=commits,
        notes=notes,
    )
