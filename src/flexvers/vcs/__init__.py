"""Version control access."""

from __future__ import annotations

from flexvers.vcs.git import Commit, GitRepository, VersionTag

__all__ = ["Commit", "GitRepository", "VersionTag"]
