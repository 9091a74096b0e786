"""
PURPOSE: Verify Slack request signatures before any payload is trusted.

Slack signs every Events API delivery with HMAC-SHA256 over
"v0:<timestamp>:<raw body>" keyed by the app's signing secret, and sends the
result as "v0=<hex digest>" in X-Slack-Signature alongside
X-Slack-Request-Timestamp. Verification is pure: it reads the headers and
body and either returns or raises a SignatureError subclass.

CALLED BY: slack/handler.py
"""

import hashlib
import hmac
from typing import Mapping, Optional

from stonks.slack.errors import (
    ExpiredTimestampError,
    InvalidSignatureError,
    MissingSignatureError,
)
from stonks.utils.time_utils import get_unix_time, seconds_apart

SIGNATURE_HEADER = "X-Slack-Signature"
TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_VERSION = "v0"

# Slack's recommended replay window
DEFAULT_MAX_AGE_SECONDS = 300


def _header(headers: Mapping[str, str], name: str) -> str:
    """Case-insensitive header lookup over any mapping."""
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                value = candidate
                break
    return (value or "").strip()


def compute_signature(signing_secret: str, timestamp: str, body: bytes) -> str:
    """
    PURPOSE: Compute the expected X-Slack-Signature value.

    Args:
        signing_secret: The Slack app signing secret.
        timestamp: X-Slack-Request-Timestamp exactly as received.
        body: Raw request body bytes.

    Returns:
        str: "v0=" followed by the lowercase hex HMAC-SHA256 digest.
    """
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    digest = hmac.new(signing_secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_request(
    headers: Mapping[str, str],
    body: bytes,
    signing_secret: str,
    now: Optional[int] = None,
    max_age: int = DEFAULT_MAX_AGE_SECONDS,
) -> None:
    """
    PURPOSE: Authenticate one delivery against the configured signing secret.

    The caller decides what an empty secret means; this function always
    verifies.

    Args:
        headers: Request headers (any mapping; lookup is case-insensitive).
        body: Raw request body, before any decoding.
        signing_secret: Shared secret; must be non-empty.
        now: Current Unix time, injectable for tests.
        max_age: Allowed distance in seconds between the request timestamp and now.

    Raises:
        MissingSignatureError: Signature or timestamp header is absent.
        ExpiredTimestampError: Timestamp is unparsable or outside the window.
        InvalidSignatureError: Signature does not match.
    """
    signature = _header(headers, SIGNATURE_HEADER)
    timestamp = _header(headers, TIMESTAMP_HEADER)
    if not signature or not timestamp:
        raise MissingSignatureError("missing headers")

    try:
        ts = int(timestamp)
    except ValueError:
        raise ExpiredTimestampError(f"invalid timestamp {timestamp!r}") from None

    current = get_unix_time() if now is None else now
    if seconds_apart(ts, current) > max_age:
        raise ExpiredTimestampError("timestamp is too old")

    expected = compute_signature(signing_secret, timestamp, body)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        raise InvalidSignatureError("computed unexpected signature")
