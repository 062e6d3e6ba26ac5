"""GitHub REST client for the sync proxy.

Single attempt per call: no retries, failures surface immediately as
UpstreamError carrying GitHub's status code.
"""

from __future__ import annotations

import httpx
import structlog

from neonhub.config import settings
from neonhub.errors import UpstreamError

logger = structlog.get_logger()

GITHUB_ACCEPT = "application/vnd.github.v3+json"
REPOS_PER_PAGE = 100


class GitHubClient:
    """Calls the GitHub API on behalf of one user's token."""

    def __init__(
        self,
        token: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.GITHUB_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GITHUB_TIMEOUT_SECONDS
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": GITHUB_ACCEPT,
        }

    async def _get(self, path: str, params: dict | None = None):
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                resp = await client.get(f"{self.base_url}{path}", params=params, headers=self.headers)
            except httpx.RequestError as e:
                logger.error("github_request_failed", path=path, error=type(e).__name__)
                raise UpstreamError("GitHub is unreachable") from e

        if resp.is_error:
            logger.warning("github_api_error", path=path, status=resp.status_code)
            raise UpstreamError(status_code=resp.status_code)
        return resp.json()

    async def get_authenticated_user(self) -> dict:
        """GET /user — resolves the token's owner. Raises UpstreamError if rejected."""
        return await self._get("/user")

    async def list_repos(self) -> list[dict]:
        """GET /user/repos — up to 100 repositories, most recently updated first."""
        repos = await self._get("/user/repos", params={"per_page": REPOS_PER_PAGE, "sort": "updated"})
        logger.info("github_repos_fetched", count=len(repos))
        return repos
