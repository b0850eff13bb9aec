"""
Pull Request Enrichment
======================

Looks up pull request title and author on the GitHub REST API. A failed
lookup never stops the pipeline: the notification goes out with blank
fields instead.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from ..config.settings import GitHubSettings
from ..models import PullRequestInfo
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import EnrichmentError, ErrorCode


class PullRequestEnricher:
    """Fetches pull request metadata with a shared aiohttp session."""

    def __init__(self, settings: GitHubSettings, session: Optional[aiohttp.ClientSession] = None):
        """Initialize enricher.

        Args:
            settings: GitHub repository and credential settings
            session: Existing session to use instead of opening one
        """
        self.settings = settings
        self.logger = get_logger_for_component("enricher")
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "PullRequestEnricher":
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.request_timeout),
                headers={
                    "Authorization": f"Bearer {self.settings.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                    "User-Agent": "BuildWatch/1.0",
                },
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def pull_request_url(self, number: int) -> str:
        base = str(self.settings.api_url).rstrip("/")
        return f"{base}/repos/{self.settings.owner}/{self.settings.repo}/pulls/{number}"

    async def fetch_pull_request(self, number: int) -> Dict[str, Any]:
        """Fetch the raw pull request document.

        Raises:
            EnrichmentError: On any HTTP, network or decoding failure
        """
        if self._session is None:
            raise EnrichmentError("Enricher session is not open", pull_number=number)

        url = self.pull_request_url(number)
        try:
            async with self._session.get(url) as response:
                if response.status == 404:
                    raise EnrichmentError(
                        f"Pull request #{number} not found",
                        pull_number=number,
                        error_code=ErrorCode.GITHUB_NOT_FOUND,
                    )
                if response.status != 200:
                    raise EnrichmentError(
                        f"HTTP {response.status}: {response.reason}",
                        pull_number=number,
                    )
                data = await response.json()
        except asyncio.TimeoutError as e:
            raise EnrichmentError(
                f"Pull request lookup timed out: {e}",
                pull_number=number,
                error_code=ErrorCode.GITHUB_TIMEOUT,
            ) from e
        except (aiohttp.ClientError, ValueError) as e:
            raise EnrichmentError(str(e), pull_number=number) from e

        if not isinstance(data, dict):
            raise EnrichmentError(
                "Pull request response is not an object",
                pull_number=number,
                error_code=ErrorCode.GITHUB_INVALID_RESPONSE,
            )
        return data

    async def enrich(self, number: int) -> PullRequestInfo:
        """Get title and author for a pull request.

        Args:
            number: Pull request number

        Returns:
            PullRequestInfo, with blank fields when the lookup fails
        """
        info = PullRequestInfo()
        try:
            data = await self.fetch_pull_request(number)
        except EnrichmentError as e:
            self.logger.debug(f"Lookup of PR#{number} failed: {e}", extra=e.to_dict())
            return info

        user = data.get("user")
        if isinstance(user, dict) and isinstance(user.get("login"), str):
            info.author = user["login"]

        title = data.get("title")
        if isinstance(title, str):
            info.title = title

        return info
