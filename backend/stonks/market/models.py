"""
PURPOSE: Quote value type and the market data backend contract.

CALLED BY:
    - market/yahoo.py, market/fake.py (implementations)
    - slack/handler.py, slack/messages.py (consumers)
"""

from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, ConfigDict


class MarketBackendError(Exception):
    """A quote lookup failed."""


class Quote(BaseModel):
    """
    PURPOSE: Point-in-time market price and change for one symbol.

    Attributes:
        symbol:                        Ticker symbol as the provider reports it.
        short_name:                    Short display name (e.g. "Apple Inc.").
        long_name:                     Full name, used when short_name is missing.
        regular_market_price:          Last regular-session price.
        regular_market_change:         Absolute change since previous close.
        regular_market_change_percent: Percent change since previous close.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    short_name: str = ""
    long_name: str = ""
    regular_market_price: float = 0.0
    regular_market_change: float = 0.0
    regular_market_change_percent: float = 0.0

    @property
    def display_name(self) -> str:
        return self.short_name or self.long_name or self.symbol


class QuoteBackend(ABC):
    """
    PURPOSE: Contract for market data providers.

    Implementations look up every requested symbol in one quote() call. Callers must
    not rely on the result lining up index-for-index with the request:
    unknown symbols may be missing and the order is the provider's.
    """

    @abstractmethod
    async def quote(self, symbols: List[str]) -> List[Quote]:
        """
        PURPOSE: Fetch quotes for the given symbols.

        Args:
            symbols: Candidate ticker symbols, in the order they were mentioned.

        Returns:
            list[Quote]: Quotes for the symbols the provider recognised.

        Raises:
            MarketBackendError: If the lookup fails.
        """

    async def aclose(self) -> None:
        """Release any held connections. Default: nothing to release."""
        return None

