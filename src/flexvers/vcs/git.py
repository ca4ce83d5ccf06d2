"""Read-only access to a git repository through the git CLI.

flexvers never rewrites history: this module only lists commits, tags
and refs. Tags are created through the hosting provider, not locally.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from flexvers.core.version import Version
from flexvers.exceptions import GitError

FIELD_SEP = "\x00"
RECORD_SEP = "\x1e"
# git writes the separators itself, argv cannot carry NUL bytes.
LOG_FORMAT = "%x00".join(["%H", "%P", "%an", "%ae", "%aI", "%B"]) + "%x1e"
TAG_FORMAT = "%00".join(["%(refname:strip=2)", "%(objectname)", "%(*objectname)"])

# CI variables holding the branch name when HEAD is detached.
BRANCH_ENV_VARS = (
    "FLEXVERS_BRANCH",
    "GITHUB_HEAD_REF",
    "GITHUB_REF_NAME",
    "CI_COMMIT_REF_NAME",
    "BITBUCKET_BRANCH",
)


@dataclass(frozen=True)
class Commit:
    """A commit as read from the log."""

    sha: str
    message: str
    author_name: str
    author_email: str
    date: datetime
    parents: tuple[str, ...] = ()

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0].strip()

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass(frozen=True)
class VersionTag:
    """A tag whose name parses as a version, with the commit it points at."""

    name: str
    version: Version
    commit: str


@dataclass
class GitRepository:
    """Git repository accessed through the git executable."""

    path: Path = field(default_factory=Path.cwd)

    def __post_init__(self) -> None:
        self.path = Path(self.path).resolve()
        if not self.path.is_dir():
            raise GitError(f"Repository path does not exist: {self.path}")
        if self._run("rev-parse", "--is-bare-repository") == "true":
            raise GitError(f"Repository is bare: {self.path}")

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(f"git {' '.join(args)} failed", stderr=e.stderr) from e
        return result.stdout.strip()

    def head_sha(self) -> str:
        return self._run("rev-parse", "HEAD")

    def current_branch(self) -> str:
        """Name of the checked-out branch.

        CI systems often check out a detached HEAD; the branch is then read
        from the provider's environment variables.
        """
        try:
            return self._run("symbolic-ref", "--short", "-q", "HEAD")
        except GitError:
            pass

        for name in BRANCH_ENV_VARS:
            value = os.environ.get(name)
            if value:
                return value
        raise GitError("HEAD is detached and no CI branch variable is set")

    def remote_url(self, remote: str = "origin") -> str | None:
        try:
            return self._run("remote", "get-url", remote) or None
        except GitError:
            return None

    def get_version_tags(self, prefix: str = "v", *, merged: bool = False) -> list[VersionTag]:
        """Version tags in the repository, highest version first.

        Args:
            prefix: Tag name prefix, tags without it are ignored
            merged: Only tags reachable from HEAD
        """
        args = [
            "for-each-ref",
            f"refs/tags/{prefix}*",
            f"--format={TAG_FORMAT}",
        ]
        if merged:
            args.append("--merged=HEAD")

        tags: list[VersionTag] = []
        for line in self._run(*args).splitlines():
            name, target, peeled = line.split(FIELD_SEP)
            version = Version.from_tag(name, prefix)
            if version is not None:
                tags.append(VersionTag(name=name, version=version, commit=peeled or target))
        return sorted(tags, key=lambda tag: tag.version, reverse=True)

    def get_latest_tag(
        self, prefix: str = "v", *, exclude_commit: str | None = None
    ) -> VersionTag | None:
        """Highest release (non-prerelease) tag reachable from HEAD.

        Args:
            prefix: Tag name prefix
            exclude_commit: Ignore tags on this commit, used to skip tags a
                previous run already put on HEAD
        """
        for tag in self.get_version_tags(prefix, merged=True):
            if tag.version.is_prerelease or tag.commit == exclude_commit:
                continue
            return tag
        return None

    def get_commits_since_tag(self, tag: str | None, head: str = "HEAD") -> list[Commit]:
        """Commits after ``tag`` up to ``head``, oldest first.

        With no tag, the whole history of ``head`` is returned.
        """
        rev_range = f"{tag}..{head}" if tag else head
        output = self._run("log", f"--format={LOG_FORMAT}", rev_range)

        commits = []
        for record in output.split(RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, parents, name, email, date, message = record.split(FIELD_SEP, 5)
            commits.append(
                Commit(
                    sha=sha,
                    message=message.strip(),
                    author_name=name,
                    author_email=email,
                    date=datetime.fromisoformat(date),
                    parents=tuple(parents.split()),
                )
            )
        commits.reverse()
        return commits
