"""GitHub adapter (REST API v3).

Tags are created as lightweight refs through ``POST /git/refs``, which is
atomic: either the ref exists afterwards or nothing was written.
"""

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

API_VERSION = "2022-11-28"


class GitHubProvider(HttpProvider):
    """Tags and releases on github.com or GitHub Enterprise."""

    name = "github"
    default_api_url = "https://api.github.com"

    @classmethod
    def from_environment(
        cls,
        settings: ProviderConfig,
        remote: RemoteInfo | None,
        env: Mapping[str, str],
    ) -> GitHubProvider:
        repository = settings.repository or env.get("GITHUB_REPOSITORY") or (remote and remote.path)
        api_url = settings.api_url or env.get("GITHUB_API_URL")
        token = env.get("GITHUB_TOKEN") or env.get("GH_TOKEN")
        return cls(repository or "", token, api_url=api_url)

    def _auth_headers(self, token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json", "X-GitHub-Api-Version": API_VERSION}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def get_tag_commit(self, tag_name: str) -> str | None:
        response = self._request("GET", f"repos/{self.repository}/git/ref/tags/{quote(tag_name)}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._unexpected(response, f"tag lookup {tag_name}")

        target = response.json()["object"]
        if target["type"] == "tag":
            # Annotated tag: peel to the commit it points at.
            tag_response = self._request("GET", f"repos/{self.repository}/git/tags/{target['sha']}")
            if tag_response.status_code != 200:
                raise self._unexpected(tag_response, f"annotated tag lookup {tag_name}")
            return tag_response.json()["object"]["sha"]
        return target["sha"]

    def create_tag(self, tag_name: str, commit_id: str, message: str = "") -> None:
        response = self._request(
            "POST",
            f"repos/{self.repository}/git/refs",
            json={"ref": f"refs/tags/{tag_name}", "sha": commit_id},
        )
        if response.status_code == 201:
            return
        if response.status_code == 422 and self._mentions_existing(response):
            raise TagAlreadyExistsError(tag_name, status_code=422)
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
        if response.status_code == 422 and self._mentions_existing(response):
            logger.info("github: release for %s already exists", tag_name)
            return None
        raise self._unexpected(response, f"release creation {tag_name}")
