"""flexvers: semantic versioning and tagging for CI pipelines.

Computes the next version from a repository's commit history according
to per-branch and per-commit rules, and publishes it as a tag on GitHub,
GitLab, Bitbucket or Gitea.
"""

from __future__ import annotations

__version__ = "0.1.0"
