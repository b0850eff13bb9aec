"""
CLI Tests
========

Tests for the click command line entry point.
"""

from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

import main
from buildwatch.config import settings as settings_module
from buildwatch.utils.exceptions import ChatTransportError, FeedFetchError


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BUILDWATCH_LOGGING__FILE_PATH", str(tmp_path / "buildwatch.log"))
    monkeypatch.setenv("BUILDWATCH_LOGGING__CONSOLE_LOGGING", "false")
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.setattr(settings_module, "_settings", None)


@pytest.fixture
def runner():
    return CliRunner()


class TestClassifyCommand:

    def test_prints_status(self, runner):
        result = runner.invoke(main.cli, ["classify", "job #12 back to normal"])

        assert result.exit_code == 0
        assert result.output.strip() == "NOW FIXED"

    def test_suppressed_status(self, runner):
        result = runner.invoke(main.cli, ["classify", "job #12 was aborted"])

        assert result.output.strip() == "(suppressed)"


class TestRunCommand:

    def test_missing_credentials_exit_non_zero(self, runner, monkeypatch):
        monkeypatch.delenv("BUILDWATCH_GITHUB__TOKEN")

        result = runner.invoke(main.cli, ["run"])

        assert result.exit_code == 1

    def test_chat_connection_failure_exits_non_zero(self, runner):
        with patch.object(main.BuildWatchService, "run", AsyncMock(side_effect=ChatTransportError("Cannot connect"))):
            result = runner.invoke(main.cli, ["run"])

        assert result.exit_code == 1

    def test_feed_error_ends_run_cleanly(self, runner):
        error = FeedFetchError("HTTP 404: Not Found")
        with patch.object(main.BuildWatchService, "run", AsyncMock(return_value=error)):
            result = runner.invoke(main.cli, ["run"])

        assert result.exit_code == 0
        assert "[e]" in result.output
        assert "HTTP 404" in result.output


class TestFetchFeedCommand:

    def test_shows_entries(self, runner, atom_feed):
        async def fake_fetch(self, session):
            return self.parse(atom_feed)

        with patch.object(main.FeedPoller, "fetch", fake_fetch):
            result = runner.invoke(main.cli, ["fetch-feed", "https://ci.example.com/rssAll"])

        assert result.exit_code == 0
        assert "STILL FAILING" in result.output
        assert "NOW FIXED" in result.output

    def test_fetch_error_exits_non_zero(self, runner):
        with patch.object(main.FeedPoller, "fetch", AsyncMock(side_effect=FeedFetchError("HTTP 500: oops"))):
            result = runner.invoke(main.cli, ["fetch-feed", "https://ci.example.com/rssAll"])

        assert result.exit_code == 1
