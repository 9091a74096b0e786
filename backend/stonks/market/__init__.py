"""
Market data module for Stonks.

PURPOSE: Quote model, backend contract, and the factory that picks a backend
from settings.

Exports:
    - Quote, QuoteBackend, MarketBackendError
    - YahooBackend: Yahoo Finance through yfinance
    - FakeBackend: offline backend for local runs and tests
    - create_market_backend: Factory selecting a backend from settings
"""

from stonks.config.settings import Settings
from stonks.market.fake import FakeBackend
from stonks.market.models import MarketBackendError, Quote, QuoteBackend
from stonks.market.yahoo import YahooBackend


def create_market_backend(settings: Settings) -> QuoteBackend:
    """
    PURPOSE: Build the quote backend named by settings.MARKET_BACKEND.

    Args:
        settings: Application settings ("yahoo" or "fake").

    Returns:
        QuoteBackend: The configured backend.

    Raises:
        ValueError: If MARKET_BACKEND names an unknown backend.
    """
    name = settings.MARKET_BACKEND.strip().lower()
    if name == "yahoo":
        return YahooBackend()
    if name == "fake":
        return FakeBackend()
    raise ValueError(f"Unknown MARKET_BACKEND {settings.MARKET_BACKEND!r}; expected 'yahoo' or 'fake'")


__all__ = [
    "FakeBackend",
    "MarketBackendError",
    "Quote",
    "QuoteBackend",
    "YahooBackend",
    "create_market_backend",
]
