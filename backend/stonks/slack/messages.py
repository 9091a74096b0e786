"""
PURPOSE: Compose outbound Slack messages from quote lookups.

Builds Block Kit payloads as plain dicts. Pure: nothing here performs I/O.

CALLED BY: slack/handler.py
"""

from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, model_validator

from stonks.market.models import Quote

NO_SYMBOLS_TEXT = "Sorry, I didn't find any valid market symbols in your message. :cry:"
APOLOGY_TEXT = "Sorry, I messed something up... Try again later :poop:"
QUOTES_INTRO_TEXT = "Found the following quotes :chart_with_upwards_trend:"


class OutboundMessage(BaseModel):
    """
    PURPOSE: Content of one chat.postMessage call.

    Exactly one of text or blocks is set. The channel and thread are
    supplied when the message is sent.

    Attributes:
        text:   Plain message text.
        blocks: Ordered Block Kit blocks.
    """

    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    blocks: Optional[List[Dict[str, Any]]] = None

    @model_validator(mode="after")
    def check_one_content_kind(self) -> "OutboundMessage":
        """Validate that exactly one of text or blocks is present."""
        if (self.text is None) == (self.blocks is None):
            raise ValueError("exactly one of text or blocks must be set")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Return the content fields for a chat.postMessage request body."""
        if self.blocks is not None:
            return {"blocks": list(self.blocks)}
        return {"text": self.text}


# ════════════════════════════════════════════════════════════════
# Block builders
# ════════════════════════════════════════════════════════════════


def text_object(text: str, kind: str = "mrkdwn", verbatim: bool = False) -> Dict[str, Any]:
    obj: Dict[str, Any] = {"type": kind, "text": text}
    if kind == "mrkdwn" and verbatim:
        obj["verbatim"] = True
    return obj


def section_block(text: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "section", "text": text}


def header_block(text: str) -> Dict[str, Any]:
    return {"type": "header", "text": text_object(text, kind="plain_text")}


def divider_block() -> Dict[str, Any]:
    return {"type": "divider"}


# ════════════════════════════════════════════════════════════════
# Composition
# ════════════════════════════════════════════════════════════════


def format_quote_line(quote: Quote) -> str:
    """
    PURPOSE: Render the price/change summary for one quote.

    Two decimals throughout, with an explicit sign on the change and the
    percent change. The line is bolded, then query-escaped to match
    Slack's text escaping expectations.

    Args:
        quote: The quote to summarise.

    Returns:
        str: e.g. "%2A1.23+%2B1.23+%28%2B1.23%25%29%2A" for price, change
            and percent all 1.23.
    """
    summary = (
        f"*{quote.regular_market_price:.2f} "
        f"{quote.regular_market_change:+.2f} "
        f"({quote.regular_market_change_percent:+.2f}%)*"
    )
    return quote_plus(summary)


def text_message(text: str) -> OutboundMessage:
    return OutboundMessage(text=text)


def compose_reply(quotes: Sequence[Quote]) -> OutboundMessage:
    """
    PURPOSE: Build the reply to an app mention from its quote lookup.

    CALLED BY: EventHandler._handle_app_mention

    Args:
        quotes: Quotes returned by the backend; may be empty.

    Returns:
        OutboundMessage: The "no symbols" text when quotes is empty,
            otherwise an intro section followed by a header and summary
            line per quote, with dividers between quotes.
    """
    if not quotes:
        return text_message(NO_SYMBOLS_TEXT)

    blocks: List[Dict[str, Any]] = [section_block(text_object(QUOTES_INTRO_TEXT))]
    for i, quote in enumerate(quotes):
        blocks.append(header_block(f"{quote.display_name} ({quote.symbol})"))
        blocks.append(section_block(text_object(format_quote_line(quote), verbatim=True)))
        if i != len(quotes) - 1:
            blocks.append(divider_block())

    return OutboundMessage(blocks=blocks)
