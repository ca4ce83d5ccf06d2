"""Tag message and release body rendering.

A short plain-markdown summary of the commit range: changes grouped by
bump level, followed by the contributors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flexvers.core.version import BumpLevel

if TYPE_CHECKING:
    from flexvers.core.commits import Classification
    from flexvers.core.version import Version
    from flexvers.vcs.git import Commit

# Addresses that are not real contributors (bots, hidden emails).
EXCLUDED_EMAIL_MARKERS = ("noreply.",)

SECTION_TITLES = {
    BumpLevel.MAJOR: "## Major Changes",
    BumpLevel.MINOR: "## Minor Changes",
    BumpLevel.PATCH: "## Patch Changes",
}


def get_contributors(commits: list[Commit]) -> list[tuple[str, str]]:
    """Unique (name, email) pairs in order of first appearance."""
    seen: set[str] = set()
    contributors = []
    for commit in commits:
        email = commit.author_email.lower()
        if any(marker in email for marker in EXCLUDED_EMAIL_MARKERS) or email in seen:
            continue
        seen.add(email)
        contributors.append((commit.author_name, commit.author_email))
    return contributors


def render_release_notes(
    version: Version,
    classified: list[tuple[Commit, Classification]],
    *,
    tag_prefix: str = "v",
) -> str:
    """Render the notes for a version from its classified commits.

    Args:
        version: Version being released
        classified: Commits of the range with their classification
        tag_prefix: Tag prefix used in the heading

    Returns:
        Markdown text, empty sections are omitted
    """
    kind = "Pre-Release" if version.is_prerelease else "Release"
    lines = [f"# {kind} {version.tag_name(tag_prefix)}", ""]

    for level, title in SECTION_TITLES.items():
        entries = [commit for commit, result in classified if result.level is level]
        if entries:
            lines.append(title)
            lines.extend(f"* {commit.subject} ({commit.short_sha})" for commit in entries)
            lines.append("")

    contributors = get_contributors([commit for commit, _ in classified])
    if contributors:
        lines.append("## Credits")
        lines.extend(f"* {name} <{email}>" for name, email in contributors)
        lines.append("")

    lines.append("---")
    lines.append("Generated by flexvers")
    return "\n".join(lines)
