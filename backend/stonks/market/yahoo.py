"""
PURPOSE: Yahoo Finance quote backend built on yfinance.

Yahoo's quote endpoints require a cookie and crumb handshake; yfinance owns
that session, so this module only maps its per-ticker info onto Quote.
yfinance is blocking, so lookups run in a worker thread.

CALLED BY: market/__init__.py (create_market_backend)
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import yfinance as yf
from pydantic import ValidationError

from stonks.market.models import MarketBackendError, Quote, QuoteBackend
from stonks.utils.logger import get_logger

logger = get_logger("market.yahoo")


class YahooBackend(QuoteBackend):
    """
    PURPOSE: QuoteBackend backed by Yahoo Finance through yfinance.

    Attributes:
        _ticker_factory: Builds a ticker object exposing an ``info`` mapping
            (yf.Ticker; tests pass a stand-in).
    """

    def __init__(self, ticker_factory: Callable[[str], Any] = yf.Ticker):
        self._ticker_factory = ticker_factory

    async def quote(self, symbols: List[str]) -> List[Quote]:
        """
        PURPOSE: Fetch quotes for all symbols.

        Args:
            symbols: Ticker symbols to look up.

        Returns:
            list[Quote]: One entry per symbol Yahoo recognised, in request order.

        Raises:
            MarketBackendError: If every lookup failed, or Yahoo returned a
                value that does not fit Quote.
        """
        if not symbols:
            return []

        quotes = await asyncio.to_thread(self._lookup, symbols)
        logger.info("yahoo_quotes_retrieved", requested=len(symbols), returned=len(quotes))
        return quotes

    def _lookup(self, symbols: List[str]) -> List[Quote]:
        quotes: List[Quote] = []
        failures: List[Exception] = []

        for symbol in symbols:
            try:
                info = self._ticker_factory(symbol).info
            except Exception as e:
                logger.warning(
                    "yahoo_quote_lookup_failed",
                    symbol=symbol,
                    error=str(e),
                    exception_type=type(e).__name__,
                )
                failures.append(e)
                continue

            quote = _to_quote(symbol, info)
            if quote is not None:
                quotes.append(quote)

        # A lone bad ticker is dropped; nothing answering means Yahoo is down.
        if failures and len(failures) == len(symbols):
            last = failures[-1]
            raise MarketBackendError(f"yahoo quote request failed: {last}") from last
        return quotes


def _to_quote(symbol: str, info: Optional[Dict[str, Any]]) -> Optional[Quote]:
    """
    PURPOSE: Map one yfinance info mapping onto Quote.

    Returns:
        Quote | None: None when Yahoo has no price for the symbol, which is
            how unknown tickers come back.

    Raises:
        MarketBackendError: If a field has a type Quote rejects.
    """
    if not isinstance(info, dict):
        return None

    price = info.get("regularMarketPrice")
    if price is None:
        price = info.get("currentPrice")
    if price is None:
        return None

    previous = info.get("regularMarketPreviousClose") or info.get("previousClose")
    change = info.get("regularMarketChange")
    percent = info.get("regularMarketChangePercent")

    try:
        if change is None:
            change = price - previous if previous else 0.0
        if percent is None:
            percent = change / previous * 100 if previous else 0.0
        return Quote(
            symbol=info.get("symbol") or symbol.upper(),
            short_name=info.get("shortName") or "",
            long_name=info.get("longName") or "",
            regular_market_price=price,
            regular_market_change=change,
            regular_market_change_percent=percent,
        )
    except (TypeError, ValidationError) as e:
        raise MarketBackendError(f"unexpected yahoo quote entry for {symbol}: {e}") from e
