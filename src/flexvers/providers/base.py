"""Provider adapter contract and shared HTTP plumbing.

A provider adapter exposes three operations against one hosted repository:
read the commit a tag points at, create a tag, and create a hosted
release. The tag publisher only talks to this contract, so adding a
hosting type means adding one adapter class.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, Self, runtime_checkable

import httpx

from flexvers.exceptions import PublishError, PublishErrorKind

if TYPE_CHECKING:
    from flexvers.config.models import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "flexvers"

_SCP_REMOTE = re.compile(r"^(?:[^@/]+@)?(?P<host>[^:/]+):(?P<path>[^/].*)$")


@runtime_checkable
class Provider(Protocol):
    """What the tag publisher needs from a hosting provider."""

    name: str
    supports_releases: bool

    def get_tag_commit(self, tag_name: str) -> str | None:
        """Commit sha the tag points at, or None when the tag doesn't exist."""
        ...

    def create_tag(self, tag_name: str, commit_id: str, message: str = "") -> None:
        """Create a tag; raises TagAlreadyExistsError when the name is taken."""
        ...

    def create_release(
        self,
        tag_name: str,
        *,
        name: str,
        body: str,
        prerelease: bool,
        commit_id: str,
    ) -> str | None:
        """Create a hosted release for an existing tag, returning its URL."""
        ...


@dataclass(frozen=True)
class RemoteInfo:
    """Host and repository path parsed from a git remote URL."""

    host: str
    path: str
    scheme: str = "https"


def parse_remote_url(url: str) -> RemoteInfo | None:
    """Parse ``https://``, ``ssh://`` and scp-style (``git@host:path``) remotes."""
    url = url.strip()
    if not url:
        return None

    if "://" in url:
        parsed = httpx.URL(url)
        scheme = parsed.scheme if parsed.scheme in ("http", "https") else "https"
        host, path = parsed.host, parsed.path
    else:
        match = _SCP_REMOTE.match(url)
        if not match:
            return None
        scheme, host, path = "https", match.group("host"), match.group("path")

    path = path.strip("/").removesuffix(".git")
    if not host or not path:
        return None
    return RemoteInfo(host=host.lower(), path=path, scheme=scheme)


class HttpProvider(ABC):
    """Base class for REST adapters built on :class:`httpx.Client`.

    Subclasses set ``name``, ``default_api_url`` and the auth headers and
    implement the three provider operations with :meth:`_request`.
    """

    name: ClassVar[str] = ""
    default_api_url: ClassVar[str] = ""
    supports_releases: ClassVar[bool] = True

    def __init__(
        self,
        repository: str,
        token: str | None = None,
        *,
        api_url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not repository:
            raise ValueError(f"{self.name}: repository slug is required")
        self.repository = repository.strip("/")
        self.api_url = (api_url or self.default_api_url).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout)
        self.client.headers.update({"User-Agent": USER_AGENT, **self._auth_headers(token)})

    @classmethod
    @abstractmethod
    def from_environment(
        cls,
        settings: ProviderConfig,
        remote: RemoteInfo | None,
        env: Mapping[str, str],
    ) -> Self:
        """Build the adapter from CI environment variables and the remote."""

    @abstractmethod
    def get_tag_commit(self, tag_name: str) -> str | None: ...

    @abstractmethod
    def create_tag(self, tag_name: str, commit_id: str, message: str = "") -> None: ...

    @abstractmethod
    def create_release(
        self,
        tag_name: str,
        *,
        name: str,
        body: str,
        prerelease: bool,
        commit_id: str,
    ) -> str | None: ...

    def _auth_headers(self, token: str | None) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"} if token else {}

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, mapping transport and auth failures to PublishError.

        Responses below 500 other than 401, 403 and 429 are returned so the
        adapter can interpret 404, 409 and 422 in its own API's terms.
        """
        url = self._url(path)
        logger.debug("%s %s %s", self.name, method, url)
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise PublishError(
                f"{self.name}: request to {url} timed out", PublishErrorKind.NETWORK_FAILURE
            ) from e
        except httpx.TransportError as e:
            raise PublishError(
                f"{self.name}: request to {url} failed: {e}", PublishErrorKind.NETWORK_FAILURE
            ) from e

        status = response.status_code
        if status == 429 or (status == 403 and self._is_rate_limited(response)):
            raise PublishError(
                f"{self.name}: rate limited", PublishErrorKind.RATE_LIMITED, status_code=status
            )
        if status in (401, 403):
            raise PublishError(
                f"{self.name}: not authorized ({status}), check the API token",
                PublishErrorKind.UNAUTHORIZED,
                status_code=status,
            )
        if status >= 500:
            raise PublishError(
                f"{self.name}: server error {status}",
                PublishErrorKind.NETWORK_FAILURE,
                status_code=status,
            )
        return response

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        return (
            response.headers.get("x-ratelimit-remaining") == "0"
            or "retry-after" in response.headers
        )

    def _unexpected(self, response: httpx.Response, action: str) -> PublishError:
        return PublishError(
            f"{self.name}: unexpected response to {action}: "
            f"{response.status_code} {response.text[:200]}",
            PublishErrorKind.PROVIDER_ERROR,
            status_code=response.status_code,
        )

    @staticmethod
    def _mentions_existing(response: httpx.Response) -> bool:
        return "exist" in response.text.lower()
