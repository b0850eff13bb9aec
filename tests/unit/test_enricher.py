"""
Pull Request Enricher Tests
==========================

Unit tests for GitHub pull request lookups. Every failure must degrade to
blank metadata instead of raising.
"""

import asyncio
from unittest.mock import AsyncMock

import aiohttp
import pytest

from buildwatch.config.settings import GitHubSettings
from buildwatch.github.enricher import PullRequestEnricher
from buildwatch.models import PullRequestInfo
from buildwatch.utils.exceptions import EnrichmentError, ErrorCode


@pytest.fixture
def github_settings():
    return GitHubSettings(token="test-token", owner="openshift", repo="origin")


@pytest.fixture
def enricher(github_settings, mock_session):
    return PullRequestEnricher(github_settings, session=mock_session)


class TestPullRequestEnricher:
    """Test suite for PullRequestEnricher."""

    def test_pull_request_url(self, enricher):
        assert enricher.pull_request_url(7) == "https://api.github.com/repos/openshift/origin/pulls/7"

    def test_pull_request_url_with_custom_api(self, mock_session):
        settings = GitHubSettings(
            token="t", owner="acme", repo="widgets", api_url="https://github.example.com/api/v3/"
        )
        enricher = PullRequestEnricher(settings, session=mock_session)

        assert enricher.pull_request_url(1) == "https://github.example.com/api/v3/repos/acme/widgets/pulls/1"

    @pytest.mark.asyncio
    async def test_enrich_success(self, enricher, mock_session):
        mock_session.response.json.return_value = {
            "number": 7,
            "title": "Fix bug",
            "user": {"login": "alice"},
        }

        info = await enricher.enrich(7)

        assert info == PullRequestInfo(title="Fix bug", author="alice")
        mock_session.get.assert_called_once_with(
            "https://api.github.com/repos/openshift/origin/pulls/7"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 404, 500, 502])
    async def test_http_errors_yield_blank_info(self, enricher, mock_session, status):
        mock_session.response.status = status

        info = await enricher.enrich(7)

        assert info.title == ""
        assert info.author == ""

    @pytest.mark.asyncio
    async def test_timeout_yields_blank_info(self, enricher, mock_session):
        mock_session.get.side_effect = asyncio.TimeoutError()

        info = await enricher.enrich(7)

        assert info == PullRequestInfo()

    @pytest.mark.asyncio
    async def test_network_error_yields_blank_info(self, enricher, mock_session):
        mock_session.get.side_effect = aiohttp.ClientConnectionError("connection refused")

        assert await enricher.enrich(7) == PullRequestInfo()

    @pytest.mark.asyncio
    async def test_malformed_json_yields_blank_info(self, enricher, mock_session):
        mock_session.response.json.side_effect = ValueError("Expecting value")

        assert await enricher.enrich(7) == PullRequestInfo()

    @pytest.mark.asyncio
    async def test_non_object_response_yields_blank_info(self, enricher, mock_session):
        mock_session.response.json.return_value = ["not", "a", "pull"]

        assert await enricher.enrich(7) == PullRequestInfo()

    @pytest.mark.asyncio
    async def test_missing_fields_are_left_blank(self, enricher, mock_session):
        mock_session.response.json.return_value = {"title": "Only a title", "user": None}

        info = await enricher.enrich(7)

        assert info.title == "Only a title"
        assert info.author == ""

    @pytest.mark.asyncio
    async def test_fetch_not_found_raises_with_code(self, enricher, mock_session):
        mock_session.response.status = 404

        with pytest.raises(EnrichmentError) as exc_info:
            await enricher.fetch_pull_request(99)

        assert exc_info.value.error_code == ErrorCode.GITHUB_NOT_FOUND
        assert exc_info.value.context["pull_number"] == 99

    @pytest.mark.asyncio
    async def test_fetch_without_session_raises(self, github_settings):
        enricher = PullRequestEnricher(github_settings)

        with pytest.raises(EnrichmentError):
            await enricher.fetch_pull_request(1)

    @pytest.mark.asyncio
    async def test_injected_session_is_not_closed(self, enricher, mock_session):
        async with enricher:
            pass

        mock_session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_session_is_opened_and_closed(self, github_settings):
        enricher = PullRequestEnricher(github_settings)

        async with enricher:
            session = enricher._session
            assert isinstance(session, aiohttp.ClientSession)
            assert session.headers["Authorization"] == "Bearer test-token"

        assert session.closed
        assert enricher._session is None

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_session(self, enricher, mock_session):
        mock_session.response.json = AsyncMock(return_value={"title": "T", "user": {"login": "u"}})

        results = await asyncio.gather(*(enricher.enrich(n) for n in range(5)))

        assert all(r.author == "u" for r in results)
        assert mock_session.get.call_count == 5
