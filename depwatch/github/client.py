"""GitHub REST client used by the sync and import coordinators."""

from __future__ import annotations

import dataclasses
import os
import typing as typ
from urllib.parse import quote

import httpx
import msgspec

from depwatch.common.slug import split_fullname

from .errors import GitHubAPIError, GitHubConfigError, GitHubFileNotFoundError
from .models import RemoteRepository

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404
_REPOS_PER_PAGE = 100
_RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
_JSON_MEDIA_TYPE = "application/vnd.github+json"
_DEFAULT_API_URL = "https://api.github.com"
_DEFAULT_TIMEOUT_S = 20.0


class GitHubRepositoryClient(typ.Protocol):
    """Interface for the GitHub calls made on behalf of a user."""

    async def fetch_repositories(self, token: str) -> list[RemoteRepository]:
        """Return every repository visible to the token's owner."""
        ...

    async def fetch_file(
        self, token: str, fullname: str, branch: str, path: str
    ) -> bytes:
        """Return the raw content of *path* in *fullname* at *branch*."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRestConfig:
    """Configuration for the GitHub REST API client."""

    api_url: str = _DEFAULT_API_URL
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = "depwatch/0.1"
    max_pages: int = 50

    @classmethod
    def from_env(cls) -> GitHubRestConfig:
        """Build configuration from ``DEPWATCH_GITHUB_*`` env vars."""
        api_url = os.environ.get("DEPWATCH_GITHUB_API_URL", "").strip()
        raw_timeout = os.environ.get("DEPWATCH_GITHUB_TIMEOUT", "").strip()
        timeout_s = _DEFAULT_TIMEOUT_S
        if raw_timeout:
            try:
                timeout_s = float(raw_timeout)
            except ValueError as exc:
                raise GitHubConfigError.invalid_timeout(raw_timeout) from exc
            if timeout_s <= 0:
                raise GitHubConfigError.invalid_timeout(raw_timeout)
        return cls(api_url=api_url.rstrip("/") or _DEFAULT_API_URL, timeout_s=timeout_s)


class GitHubRestClient:
    """httpx implementation of :class:`GitHubRepositoryClient`.

    Credentials are per user, so the token is passed on every call rather
    than baked into the client headers.
    """

    def __init__(
        self,
        config: GitHubRestConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        self._config = config or GitHubRestConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._config.api_url,
            timeout=self._config.timeout_s,
            headers={"User-Agent": self._config.user_agent},
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch_repositories(self, token: str) -> list[RemoteRepository]:
        """Page through ``GET /user/repos`` until a short page is returned.

        Raises
        ------
        GitHubAPIError
            If GitHub rejects a request or returns an unexpected payload.

        """
        repositories: list[RemoteRepository] = []
        for page in range(1, self._config.max_pages + 1):
            response = await self._get(
                "/user/repos",
                token,
                params={"per_page": _REPOS_PER_PAGE, "page": page},
                accept=_JSON_MEDIA_TYPE,
            )
            try:
                batch = msgspec.json.decode(
                    response.content, type=list[RemoteRepository]
                )
            except msgspec.DecodeError as exc:
                raise GitHubAPIError.invalid_payload(str(exc)) from exc
            repositories.extend(batch)
            if len(batch) < _REPOS_PER_PAGE:
                break
        return repositories

    async def fetch_file(
        self, token: str, fullname: str, branch: str, path: str
    ) -> bytes:
        """Fetch raw file content through the contents API.

        Raises
        ------
        GitHubFileNotFoundError
            If the file, branch or repository does not exist.
        GitHubAPIError
            For any other failed request.

        """
        owner, name = split_fullname(fullname)
        url = f"/repos/{quote(owner)}/{quote(name)}/contents/{quote(path.lstrip('/'))}"
        try:
            response = await self._get(
                url, token, params={"ref": branch}, accept=_RAW_MEDIA_TYPE
            )
        except GitHubAPIError as exc:
            if exc.status_code == _HTTP_NOT_FOUND:
                raise GitHubFileNotFoundError(fullname, branch, path) from exc
            raise
        return response.content

    async def _get(
        self,
        url: str,
        token: str,
        *,
        params: dict[str, typ.Any],
        accept: str,
    ) -> httpx.Response:
        if not token.strip():
            raise GitHubConfigError.empty_token()
        try:
            response = await self._client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}", "Accept": accept},
            )
        except httpx.HTTPError as exc:
            raise GitHubAPIError.transport(exc) from exc
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(response.status_code, url)
        return response
