"""
PURPOSE: Pytest fixtures for Stonks tests.

Provides shared test data and mock objects including:
- Test settings (fake market backend, no .env)
- Mock Slack client and market backends
- An EventHandler and FastAPI TestClient wired to those mocks
"""

from unittest.mock import AsyncMock

import pytest
import structlog
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

import stonks.slack.handler as handler_module
from stonks.config.settings import Settings
from stonks.main import create_app
from stonks.market.fake import FakeBackend
from stonks.market.models import Quote, QuoteBackend
from stonks.slack.client import SlackClient
from stonks.slack.handler import EventHandler


@pytest.fixture
def test_settings():
    """
    PURPOSE: Settings with test values and no .env influence.

    Returns:
        Settings: Fake market backend, no signing secret, short timeouts.
    """
    return Settings(
        _env_file=None,
        SLACK_BOT_TOKEN="xoxb-test",
        SLACK_SIGNING_SECRET="",
        MARKET_BACKEND="fake",
        UPSTREAM_TIMEOUT_SECONDS=2.0,
        APP_ENV="development",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def mock_slack_client():
    """
    PURPOSE: Mock SlackClient recording every post_message call.

    Returns:
        AsyncMock: post_message succeeds with {"ok": True} by default.
    """
    client = AsyncMock(spec=SlackClient)
    client.post_message.return_value = {"ok": True, "ts": "1515449484.000200"}
    return client


@pytest.fixture
def fake_backend():
    """FakeBackend returning 1.23 for price, change and percent."""
    return FakeBackend(
        Quote(
            symbol="",
            regular_market_price=1.23,
            regular_market_change=1.23,
            regular_market_change_percent=1.23,
        )
    )


@pytest.fixture
def mock_backend():
    """
    PURPOSE: Mock QuoteBackend for asserting whether lookups happen.

    Returns:
        AsyncMock: quote() returns [] unless a test overrides it.
    """
    backend = AsyncMock(spec=QuoteBackend)
    backend.quote.return_value = []
    return backend


@pytest.fixture
def make_handler(mock_slack_client, fake_backend):
    """Factory building an EventHandler over the mock client by default."""

    def _make(signing_secret: str = "", backend=None, slack_client=None, **kwargs) -> EventHandler:
        return EventHandler(
            slack_client=slack_client or mock_slack_client,
            signing_secret=signing_secret,
            market_backend=backend or fake_backend,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_client(test_settings, make_handler):
    """Factory building a TestClient around create_app with an injected handler."""

    def _make(**handler_kwargs) -> TestClient:
        app = create_app(test_settings, event_handler=make_handler(**handler_kwargs))
        return TestClient(app)

    return _make


@pytest.fixture
def captured_logs(monkeypatch):
    """
    PURPOSE: Capture structlog events emitted by the dispatch handler.

    The handler's module logger caches its processors on first use, so a
    fresh logger is swapped in while capture is active.

    Returns:
        list[dict]: Captured event dicts (event name under "event").
    """
    with capture_logs() as logs:
        monkeypatch.setattr(handler_module, "logger", structlog.get_logger())
        yield logs
