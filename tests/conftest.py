"""Shared test fixtures."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from flexvers.config.loader import parse_config
from flexvers.config.models import FlexversConfig
from flexvers.core.rules import RuleTable, load_rule_table
from flexvers.vcs.git import Commit

SAMPLE_DOCUMENT: dict[str, Any] = {
    "tagging": {
        "supported_repositories": {
            "github": {"enabled": True},
            "gitlab": {"enabled": False},
        }
    },
    "branches": [
        {"name": "main"},
        {"name": "develop", "prerelease": True, "increment": ["MINOR"]},
        {"name": "feature/*", "prerelease": True},
        {"name": "feature/login", "increment": ["PATCH"]},
        {"name": "release/*", "increment": ["MAJOR"]},
    ],
    "commits": {
        "default": "PATCH",
        "caseSensitive": False,
        "release": ["release"],
        "prerelease": ["prerelease"],
        "map": {
            "MAJOR": ["breaking"],
            "MINOR": ["feat", "feature"],
            "PATCH": ["fix", "perf"],
        },
    },
}


def make_commit(
    sha: str,
    message: str,
    author_name: str = "Test",
    author_email: str = "test@test.com",
) -> Commit:
    return Commit(sha, message, author_name, author_email, datetime.now(), ())


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """A deep copy of the sample configuration document."""
    return json.loads(json.dumps(SAMPLE_DOCUMENT))


@pytest.fixture
def sample_config(sample_document: dict[str, Any]) -> FlexversConfig:
    return parse_config(sample_document)


@pytest.fixture
def rule_table(sample_config: FlexversConfig) -> RuleTable:
    return load_rule_table(sample_config)


@pytest.fixture
def commit_factory() -> Callable[..., Commit]:
    """Build commits with ``commit_factory(sha, message)``."""
    return make_commit


@pytest.fixture
def feat_commit() -> Commit:
    return make_commit("feat1234567", "feat: add user authentication")


@pytest.fixture
def fix_commit() -> Commit:
    return make_commit("fix1234567", "fix(core): handle null response")


@pytest.fixture
def breaking_commit() -> Commit:
    return make_commit("break123456", "feat!: redesign configuration format")


@pytest.fixture
def sample_commits(
    feat_commit: Commit, fix_commit: Commit, breaking_commit: Commit
) -> list[Commit]:
    return [
        feat_commit,
        fix_commit,
        make_commit("docs1234567", "docs: update readme"),
        breaking_commit,
        make_commit("chore123456", "chore: bump dependencies"),
    ]


# =============================================================================
# Temporary git repositories
# =============================================================================


class GitHelper:
    """Small wrapper to build a throwaway repository in tests."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.env = {
            **os.environ,
            "GIT_AUTHOR_NAME": "Test User",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test User",
            "GIT_COMMITTER_EMAIL": "test@example.com",
            "GIT_CONFIG_GLOBAL": os.devnull,
            "GIT_CONFIG_NOSYSTEM": "1",
        }

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            env=self.env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def commit(self, message: str) -> str:
        self.git("commit", "--allow-empty", "-q", "-m", message)
        return self.git("rev-parse", "HEAD")

    def tag(self, name: str, annotated: bool = False) -> None:
        if annotated:
            self.git("tag", "-a", name, "-m", f"Release {name}")
        else:
            self.git("tag", name)


@pytest.fixture
def git_repo(tmp_path: Path, sample_document: dict[str, Any]) -> GitHelper:
    """A git repository on ``main`` with a .semver.json and a GitHub origin."""
    helper = GitHelper(tmp_path)
    helper.git("init", "-q", "-b", "main")
    helper.git("remote", "add", "origin", "git@github.com:acme/widgets.git")
    (tmp_path / ".semver.json").write_text(json.dumps(sample_document))
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "widgets"\nversion = "0.0.0"\n',
    )
    helper.git("add", ".")
    helper.commit("chore: initial commit")
    return helper
