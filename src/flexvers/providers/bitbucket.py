"""Bitbucket Cloud adapter (REST API 2.0).

Bitbucket has no hosted release objects, only tags.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from flexvers.exceptions import TagAlreadyExistsError
from flexvers.providers.base import DEFAULT_TIMEOUT, HttpProvider, RemoteInfo

if TYPE_CHECKING:
    from flexvers.config.models import ProviderConfig

logger = logging.getLogger(__name__)


class BitbucketProvider(HttpProvider):
    """Tags on bitbucket.org.

    Authenticates with an access token (Bearer) or with a username and app
    password (HTTP basic auth).
    """

    name = "bitbucket"
    default_api_url = "https://api.bitbucket.org/2.0"
    supports_releases = False

    def __init__(
        self,
        repository: str,
        token: str | None = None,
        *,
        username: str | None = None,
        app_password: str | None = None,
        api_url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(repository, token, api_url=api_url, client=client, timeout=timeout)
        if not token and username and app_password:
            self.client.auth = httpx.BasicAuth(username, app_password)

    @classmethod
    def from_environment(
        cls,
        settings: ProviderConfig,
        remote: RemoteInfo | None,
        env: Mapping[str, str],
    ) -> BitbucketProvider:
        repository = (
            settings.repository or env.get("BITBUCKET_REPO_FULL_NAME") or (remote and remote.path)
        )
        return cls(
            repository or "",
            env.get("BITBUCKET_TOKEN"),
            username=env.get("BITBUCKET_USERNAME"),
            app_password=env.get("BITBUCKET_APP_PASSWORD"),
            api_url=settings.api_url,
        )

    def get_tag_commit(self, tag_name: str) -> str | None:
        response = self._request(
            "GET", f"repositories/{self.repository}/refs/tags/{quote(tag_name, safe='')}"
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._unexpected(response, f"tag lookup {tag_name}")
        return response.json()["target"]["hash"]

    def create_tag(self, tag_name: str, commit_id: str, message: str = "") -> None:
        payload: dict[str, object] = {"name": tag_name, "target": {"hash": commit_id}}
        if message:
            payload["message"] = message

        response = self._request("POST", f"repositories/{self.repository}/refs/tags", json=payload)
        if response.status_code == 201:
            return
        if response.status_code in (400, 409) and self._mentions_existing(response):
            raise TagAlreadyExistsError(tag_name, status_code=response.status_code)
        raise self._unexpected(response, f"tag creation {tag_name}")

    def create_release(
        self,
        tag_name: str,
        *,
        name: str,
        body: str,
        prerelease: bool,
        commit_id: str,
    ) -> str | None:
        logger.info("bitbucket: hosted releases are not supported, only %s was tagged", tag_name)
        return None
