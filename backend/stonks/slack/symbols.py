"""
PURPOSE: Pull candidate market symbols out of free-form Slack message text.

A token qualifies when it is 3-4 letters, optionally followed by trailing
non-letter characters (punctuation, emoji markup); the trailing part is
stripped. Everything else is dropped silently.

CALLED BY: slack/handler.py (app mention dispatch)
"""

import re
from typing import Iterable, List

SYMBOL_PATTERN = re.compile(r"^([a-z]{3,4})[^a-z]*$", re.IGNORECASE)


def extract_symbols(tokens: Iterable[str]) -> List[str]:
    """
    PURPOSE: Filter whitespace-delimited tokens down to possible symbols.

    Order and duplicates are preserved, as is the case of the matched letters.

    Args:
        tokens: Tokens from the message text, in order.

    Returns:
        list[str]: Candidate symbols; empty when nothing qualifies.

    Examples:
        ["aaa...", "bbbb."]  → ["aaa", "bbbb"]
        ["toolong", ".prefix", "42"] → []
    """
    symbols: List[str] = []
    for token in tokens:
        match = SYMBOL_PATTERN.match(token)
        if match is None:
            continue
        symbols.append(match.group(1))
    return symbols


def extract_symbols_from_text(text: str) -> List[str]:
    """Split text on whitespace and run extract_symbols over the tokens."""
    return extract_symbols(text.split())
