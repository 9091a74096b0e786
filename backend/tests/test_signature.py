"""
PURPOSE: Tests for Slack request signature verification.

Covers the three failure kinds (missing, expired, invalid), the freshness
window in both directions, and header case handling.
"""

import hashlib
import hmac

import pytest

from stonks.slack.errors import (
    AuthFailure,
    ExpiredTimestampError,
    InvalidSignatureError,
    MissingSignatureError,
    SignatureError,
)
from stonks.slack.signature import compute_signature, verify_request

SECRET = "8f742231b10e8888abcd99yyyzzz85a5"
NOW = 1531420618
BODY = (
    b"token=xyzz0WbapA4vBCDEFasx0q6G&team_id=T1DC2JH3J&team_domain=testteamnow"
    b"&channel_id=G8PSS9T3V&channel_name=foobar&user_id=U2CERLKJA&user_name=roadrunner"
    b"&command=%2Fwebhook-collect&text=&response_url=https%3A%2F%2Fhooks.slack.com%2Fcommands"
    b"%2FT1DC2JH3J%2F397700885554%2F96rGlfmibIGlgcZRskXaIFfN&trigger_id=398738663015.47445629121"
    b".803a0bc887a14d10d2c447fce8b6703c"
)


def _headers(signature: str, timestamp: str) -> dict:
    return {"X-Slack-Signature": signature, "X-Slack-Request-Timestamp": timestamp}


class TestComputeSignature:
    """Test signature computation."""

    def test_hmac_over_versioned_base_string(self):
        base = b"v0:" + str(NOW).encode() + b":" + BODY
        digest = hmac.new(SECRET.encode(), base, hashlib.sha256).hexdigest()
        assert compute_signature(SECRET, str(NOW), BODY) == "v0=" + digest

    def test_depends_on_timestamp(self):
        assert compute_signature(SECRET, "1", BODY) != compute_signature(SECRET, "2", BODY)


class TestVerifyRequest:
    """Test verify_request outcomes."""

    def test_valid_signature(self):
        headers = _headers(compute_signature(SECRET, str(NOW), BODY), str(NOW))
        verify_request(headers, BODY, SECRET, now=NOW)

    def test_headers_case_insensitive(self):
        signature = compute_signature(SECRET, str(NOW), BODY)
        headers = {"x-slack-signature": signature, "x-slack-request-timestamp": str(NOW)}
        verify_request(headers, BODY, SECRET, now=NOW)

    def test_tampered_signature_is_invalid(self):
        signature = compute_signature(SECRET, str(NOW), BODY)
        tampered = signature[:-1] + ("0" if signature[-1] != "0" else "1")
        with pytest.raises(InvalidSignatureError) as exc_info:
            verify_request(_headers(tampered, str(NOW)), BODY, SECRET, now=NOW)
        assert exc_info.value.reason is AuthFailure.INVALID

    def test_tampered_body_is_invalid(self):
        headers = _headers(compute_signature(SECRET, str(NOW), BODY), str(NOW))
        with pytest.raises(InvalidSignatureError):
            verify_request(headers, BODY + b"x", SECRET, now=NOW)

    def test_wrong_secret_is_invalid(self):
        headers = _headers(compute_signature("other-secret", str(NOW), BODY), str(NOW))
        with pytest.raises(InvalidSignatureError):
            verify_request(headers, BODY, SECRET, now=NOW)

    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"X-Slack-Signature": "v0=abc"},
            {"X-Slack-Request-Timestamp": str(NOW)},
            {"X-Slack-Signature": "", "X-Slack-Request-Timestamp": str(NOW)},
        ],
    )
    def test_missing_headers(self, headers):
        with pytest.raises(MissingSignatureError) as exc_info:
            verify_request(headers, BODY, SECRET, now=NOW)
        assert exc_info.value.reason is AuthFailure.MISSING

    def test_old_timestamp_is_expired(self):
        ts = str(NOW - 301)
        headers = _headers(compute_signature(SECRET, ts, BODY), ts)
        with pytest.raises(ExpiredTimestampError) as exc_info:
            verify_request(headers, BODY, SECRET, now=NOW)
        assert exc_info.value.reason is AuthFailure.EXPIRED

    def test_future_timestamp_is_expired(self):
        ts = str(NOW + 301)
        headers = _headers(compute_signature(SECRET, ts, BODY), ts)
        with pytest.raises(ExpiredTimestampError):
            verify_request(headers, BODY, SECRET, now=NOW)

    def test_edge_of_window_accepted(self):
        ts = str(NOW - 300)
        headers = _headers(compute_signature(SECRET, ts, BODY), ts)
        verify_request(headers, BODY, SECRET, now=NOW)

    def test_custom_max_age(self):
        ts = str(NOW - 30)
        headers = _headers(compute_signature(SECRET, ts, BODY), ts)
        with pytest.raises(ExpiredTimestampError):
            verify_request(headers, BODY, SECRET, now=NOW, max_age=10)

    def test_non_numeric_timestamp_is_expired(self):
        with pytest.raises(ExpiredTimestampError):
            verify_request(_headers("v0=abc", "yesterday"), BODY, SECRET, now=NOW)

    def test_all_failures_share_base_class(self):
        for exc_type in (MissingSignatureError, ExpiredTimestampError, InvalidSignatureError):
            assert issubclass(exc_type, SignatureError)
