"""GitLab adapter (REST API v4)."""

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


class GitLabProvider(HttpProvider):
    """Tags and releases on gitlab.com or a self-managed instance.

    A personal or project access token is sent as ``PRIVATE-TOKEN``; inside
    GitLab CI the job token can be used instead (``JOB-TOKEN``).
    """

    name = "gitlab"
    default_api_url = "https://gitlab.com/api/v4"

    def __init__(
        self,
        repository: str,
        token: str | None = None,
        *,
        job_token: bool = False,
        api_url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.job_token = job_token
        super().__init__(repository, token, api_url=api_url, client=client, timeout=timeout)
        self.project = quote(self.repository, safe="")

    @classmethod
    def from_environment(
        cls,
        settings: ProviderConfig,
        remote: RemoteInfo | None,
        env: Mapping[str, str],
    ) -> GitLabProvider:
        repository = settings.repository or env.get("CI_PROJECT_PATH") or (remote and remote.path)
        api_url = settings.api_url or env.get("CI_API_V4_URL")
        if not api_url and remote and remote.host != "gitlab.com":
            api_url = f"{remote.scheme}://{remote.host}/api/v4"

        token = env.get("GITLAB_TOKEN") or env.get("GL_TOKEN")
        if token:
            return cls(repository or "", token, api_url=api_url)
        return cls(repository or "", env.get("CI_JOB_TOKEN"), job_token=True, api_url=api_url)

    def _auth_headers(self, token: str | None) -> dict[str, str]:
        if not token:
            return {}
        return {"JOB-TOKEN" if self.job_token else "PRIVATE-TOKEN": token}

    def get_tag_commit(self, tag_name: str) -> str | None:
        response = self._request(
            "GET", f"projects/{self.project}/repository/tags/{quote(tag_name, safe='')}"
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise self._unexpected(response, f"tag lookup {tag_name}")
        return response.json()["commit"]["id"]

    def create_tag(self, tag_name: str, commit_id: str, message: str = "") -> None:
        payload = {"tag_name": tag_name, "ref": commit_id}
        if message:
            payload["message"] = message

        response = self._request("POST", f"projects/{self.project}/repository/tags", json=payload)
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
        # GitLab has no prerelease flag; upcoming releases are derived from
        # released_at, so prereleases are plain releases here.
        response = self._request(
            "POST",
            f"projects/{self.project}/releases",
            json={"tag_name": tag_name, "name": name, "description": body, "ref": commit_id},
        )
        if response.status_code == 201:
            return response.json().get("_links", {}).get("self")
        if response.status_code == 409:
            logger.info("gitlab: release for %s already exists", tag_name)
            return None
        raise self._unexpected(response, f"release creation {tag_name}")
