"""
PURPOSE: In-process quote backend that never touches the network.

Returns a copy of one base quote for every requested symbol, with the symbol
swapped in. Selected with MARKET_BACKEND=fake for local runs against a Slack
test workspace, and used by the test suite.
"""

from typing import List, Optional

from stonks.market.models import Quote, QuoteBackend


class FakeBackend(QuoteBackend):
    """QuoteBackend returning base_quote once per requested symbol."""

    def __init__(self, base_quote: Optional[Quote] = None):
        self.base_quote = base_quote or Quote(
            symbol="",
            regular_market_price=1.23,
            regular_market_change=1.23,
            regular_market_change_percent=1.23,
        )

    async def quote(self, symbols: List[str]) -> List[Quote]:
        return [self.base_quote.model_copy(update={"symbol": s}) for s in symbols]
