"""Gitea adapter (REST API v1). Also works against Forgejo."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING
from urllib.parse import quote

from flexvers.exceptions import TagAlreadyExistsError
from flexvers.providers.base import HttpProvider, RemoteInfo

if TYPE_CHECKING:
    from flexvers.config.models import ProviderConfig

logger = logging.getLogger(__name__)


class GiteaProvider(HttpProvider):
    """Tags and releases on a Gitea instance.

    There is no public default instance: the API URL comes from the
    configuration, ``GITEA_API_URL``, or the host of the origin remote.
    """

    name = "gitea"

    @classmethod
    def from_environment(
        cls,
        settings: ProviderConfig,
        remote: RemoteInfo | None,
        env: Mapping[str, str],
    ) -> GiteaProvider:
        repository = settings.repository or env.get("GITHUB_REPOSITORY") or (remote and remote.path)
        api_url = settings.api_url or env.get("GITEA_API_URL")
        if not api_url and remote:
            api_url = f"{remote.scheme}://{remote.host}/api/v1"
        if not api_url:
            raise ValueError("gitea: set api_url in the configuration or GITEA_API_URL")
        return cls(repository or "", env.get("GITEA_TOKEN"), api_url=api_url)

    def _auth_headers(self, token: str | None) -> dict[str, str]:
        return {"Authorization": f"token {token}"} if token else {}

    def get_tag_commit(self, tag_name: str) -> str | None:
        response = self._request("GET", f"repos/{self.repository}/tags/{quote(tag_name, safe='')}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._unexpected(response, f"tag lookup {tag_name}")
        return response.json()["commit"]["sha"]

    def create_tag(self, tag_name: str, commit_id: str, message: str = "") -> None:
        response = self._request(
            "POST",
            f"repos/{self.repository}/tags",
            json={"tag_name": tag_name, "target": commit_id, "message": message},
        )
        if response.status_code == 201:
            return
        if response.status_code in (409, 422):
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
        response = self._request(
            "POST",
            f"repos/{self.repository}/releases",
            json={
                "tag_name": tag_name,
                "name": name,
                "body": body,
                "draft": False,
                "prerelease": prerelease,
                "target_commitish": commit_id,
            },
        )
        if response.status_code == 201:
            return response.json().get("html_url")
        if response.status_code == 409:
            logger.info("gitea: release for %s already exists", tag_name)
            return None
        raise self._unexpected(response, f"release creation {tag_name}")
