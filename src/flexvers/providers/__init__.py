"""Hosting provider adapters.

One adapter per hosting type, all satisfying :class:`Provider`:

- ``github``: :class:`GitHubProvider`
- ``gitlab``: :class:`GitLabProvider`
- ``bitbucket``: :class:`BitbucketProvider`
- ``gitea``: :class:`GiteaProvider`
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import TYPE_CHECKING

from flexvers.exceptions import ConfigError, ConfigErrorKind
from flexvers.providers.base import HttpProvider, Provider, RemoteInfo, parse_remote_url
from flexvers.providers.bitbucket import BitbucketProvider
from flexvers.providers.gitea import GiteaProvider
from flexvers.providers.github import GitHubProvider
from flexvers.providers.gitlab import GitLabProvider

if TYPE_CHECKING:
    from flexvers.core.rules import RuleTable

PROVIDERS: dict[str, type[HttpProvider]] = {
    GitHubProvider.name: GitHubProvider,
    GitLabProvider.name: GitLabProvider,
    BitbucketProvider.name: BitbucketProvider,
    GiteaProvider.name: GiteaProvider,
}

KNOWN_HOSTS = {
    "github.com": "github",
    "gitlab.com": "gitlab",
    "bitbucket.org": "bitbucket",
}


def detect_provider(remote: RemoteInfo | None) -> str | None:
    """Guess the hosting type from the remote host."""
    if remote is None:
        return None
    if remote.host in KNOWN_HOSTS:
        return KNOWN_HOSTS[remote.host]
    for name in PROVIDERS:
        if name in remote.host:
            return name
    return None


def select_provider(
    table: RuleTable,
    remote: RemoteInfo | None,
    override: str | None = None,
) -> str:
    """Pick the provider for this run and check that it is enabled.

    Raises:
        ConfigError: If the provider is unknown, undetectable, or not enabled
    """
    name = override.lower() if override else detect_provider(remote)
    if name is None:
        host = remote.host if remote else "<no remote>"
        raise ConfigError(
            f"Cannot detect the repository type of {host}, use --provider",
            ConfigErrorKind.UNKNOWN_PROVIDER,
        )
    if name not in PROVIDERS:
        raise ConfigError(
            f"Unsupported repository type {name!r}. Supported: {', '.join(PROVIDERS)}",
            ConfigErrorKind.UNKNOWN_PROVIDER,
        )
    if not table.provider_enabled(name):
        raise ConfigError(
            f"Repository type {name!r} is not enabled in tagging.supported_repositories",
            ConfigErrorKind.PROVIDER_DISABLED,
        )
    return name


def create_provider(
    name: str,
    table: RuleTable,
    remote_url: str | None,
    env: Mapping[str, str] | None = None,
) -> HttpProvider:
    """Instantiate the adapter for ``name`` from configuration and environment.

    Raises:
        ConfigError: If the repository slug or API URL cannot be determined
    """
    settings = table.providers[name]
    remote = parse_remote_url(remote_url) if remote_url else None
    try:
        return PROVIDERS[name].from_environment(
            settings, remote, os.environ if env is None else env
        )
    except ValueError as e:
        raise ConfigError(str(e), ConfigErrorKind.INVALID_DOCUMENT) from e


__all__ = [
    "KNOWN_HOSTS",
    "PROVIDERS",
    "BitbucketProvider",
    "GitHubProvider",
    "GitLabProvider",
    "GiteaProvider",
    "HttpProvider",
    "Provider",
    "RemoteInfo",
    "create_provider",
    "detect_provider",
    "parse_remote_url",
    "select_provider",
]
