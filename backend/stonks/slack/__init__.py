"""
PURPOSE: Slack Events API integration for Stonks.

Receives app_mention events, looks up the market symbols mentioned and
replies in thread with formatted quotes.

Exports:
    - EventHandler, Delivery, HandlerResponse: the dispatch pipeline
    - SlackClient: chat.postMessage client
"""

from stonks.slack.client import SlackClient
from stonks.slack.handler import Delivery, EventHandler, HandlerResponse

__all__ = [
    "Delivery",
    "EventHandler",
    "HandlerResponse",
    "SlackClient",
]
