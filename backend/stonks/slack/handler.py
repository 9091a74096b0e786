"""
PURPOSE: Dispatch handler for Slack Events API deliveries.

Bridges inbound Slack events to the market data backend. For one delivery:
    1. Reject anything but POST (405).
    2. Verify the request signature, unless no signing secret is configured.
    3. Parse the event envelope.
    4. Answer url_verification handshakes by echoing the challenge.
    5. For app_mention callbacks: extract candidate symbols, look them up,
       and reply in the mention's thread (broadcast to the channel).

Any other event kind is answered with 501. If posting the reply fails, one
best-effort apology is posted to the same thread; its own failure is logged
and dropped so the original error is the one reported.

Each delivery is handled end to end inside its own request. The handler
holds only read-only configuration, so one instance serves all requests.

CALLED BY: api/routes_slack.py (POST /slack/event)
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Mapping, Optional, TypeVar, Union

from stonks.market.models import QuoteBackend
from stonks.slack.client import SlackClient
from stonks.slack.errors import (
    AuthFailure,
    HTTPError,
    MalformedPayloadError,
    SignatureError,
    UnrecognizedEnvelopeError,
    client_error,
    not_implemented,
    server_error,
)
from stonks.slack.events import (
    AppMentionEvent,
    EventCallback,
    URLVerificationEvent,
    parse_event,
)
from stonks.slack.messages import APOLOGY_TEXT, OutboundMessage, compose_reply, text_message
from stonks.slack.signature import DEFAULT_MAX_AGE_SECONDS, verify_request
from stonks.slack.symbols import extract_symbols_from_text
from stonks.utils.logger import get_logger

logger = get_logger("slack.handler")

T = TypeVar("T")

# Missing, expired and invalid signatures are all the caller's fault but
# each gets its own status so they can be told apart from the outside.
AUTH_FAILURE_STATUS: Dict[AuthFailure, int] = {
    AuthFailure.MISSING: 400,
    AuthFailure.EXPIRED: 403,
    AuthFailure.INVALID: 401,
}


@dataclass(frozen=True)
class Delivery:
    """
    PURPOSE: One inbound webhook request, as received.

    Attributes:
        method:  HTTP method.
        path:    Request path, for logging.
        headers: Request headers (lookup must tolerate any case).
        body:    Raw body bytes; signatures are computed over these.
    """

    method: str
    path: str
    headers: Mapping[str, str]
    body: bytes


@dataclass(frozen=True)
class HandlerResponse:
    """Status code and JSON body to write back."""

    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


class EventHandler:
    """
    PURPOSE: Authenticate, parse and dispatch Slack event deliveries.

    Attributes:
        _slack_client: Outbound client used to post replies.
        _signing_secret: Slack signing secret; empty disables verification.
        _market_backend: Quote lookup backend.
        _max_signature_age: Allowed request timestamp skew, in seconds.
        _upstream_timeout: Bound on each backend/outbound call, in seconds.
    """

    def __init__(
        self,
        slack_client: SlackClient,
        signing_secret: str,
        market_backend: QuoteBackend,
        max_signature_age: int = DEFAULT_MAX_AGE_SECONDS,
        upstream_timeout: Optional[float] = 10.0,
    ):
        """
        PURPOSE: Initialise the handler with its collaborators.

        Args:
            slack_client: Client for chat.postMessage.
            signing_secret: Slack signing secret. Empty means requests are
                accepted unauthenticated.
            market_backend: Backend used for quote lookups.
            max_signature_age: Timestamp freshness window in seconds.
            upstream_timeout: Seconds allowed per external call; None disables.
        """
        self._slack_client = slack_client
        self._signing_secret = signing_secret
        self._market_backend = market_backend
        self._max_signature_age = max_signature_age
        self._upstream_timeout = upstream_timeout

        if not signing_secret:
            logger.warning(
                "slack_signature_verification_disabled",
                message="No signing secret configured; deliveries are accepted unauthenticated.",
            )

    async def handle(self, delivery: Delivery) -> HandlerResponse:
        """
        PURPOSE: Process one delivery and produce the response to write.

        Never raises for request-level failures: every failure becomes an
        HTTPError rendered as {"status_code", "error"}.

        Args:
            delivery: The inbound request.

        Returns:
            HandlerResponse: 200 with {"Challenge": ...} for handshakes,
                200 with {} after replying to a mention, or the error outcome.
        """
        log = logger.bind(method=delivery.method, path=delivery.path)

        try:
            envelope = self._validate_request(delivery, log)
            body = await self._dispatch(envelope, log)
        except HTTPError as e:
            return self._respond_with_error(e, log)
        except Exception as e:
            err = server_error("internal error", e)
            err.__cause__ = e
            return self._respond_with_error(err, log)

        return HandlerResponse(status_code=200, body=body)

    async def aclose(self) -> None:
        """Close the outbound client and the market backend."""
        await self._slack_client.aclose()
        await self._market_backend.aclose()

    # ════════════════════════════════════════════════════════════════
    # Request validation
    # ════════════════════════════════════════════════════════════════

    def _validate_request(
        self, delivery: Delivery, log: Any
    ) -> Union[URLVerificationEvent, EventCallback]:
        if delivery.method.upper() != "POST":
            raise client_error(f"invalid method: {delivery.method}", 405)

        if self._signing_secret:
            try:
                verify_request(
                    delivery.headers,
                    delivery.body,
                    self._signing_secret,
                    max_age=self._max_signature_age,
                )
            except SignatureError as e:
                raise client_error("verifying signature", AUTH_FAILURE_STATUS[e.reason], e) from e
            except Exception as e:
                raise server_error("validating request", e) from e
        else:
            log.warning("slack_signature_verification_skipped")

        try:
            return parse_event(delivery.body)
        except UnrecognizedEnvelopeError as e:
            raise not_implemented(e.kind) from e
        except MalformedPayloadError as e:
            # The caller is trusted by now, so a bad payload is our problem.
            raise server_error("parsing event", e) from e

    # ════════════════════════════════════════════════════════════════
    # Dispatch
    # ════════════════════════════════════════════════════════════════

    async def _dispatch(
        self, envelope: Union[URLVerificationEvent, EventCallback], log: Any
    ) -> Dict[str, Any]:
        if isinstance(envelope, URLVerificationEvent):
            log.info("slack_url_verification")
            return {"Challenge": envelope.challenge}

        if isinstance(envelope, EventCallback):
            inner = envelope.event
            if isinstance(inner, AppMentionEvent):
                await self._handle_app_mention(inner, log.bind(event_id=envelope.event_id))
                return {}
            raise not_implemented(inner.type)

        raise not_implemented(type(envelope).__name__)

    async def _handle_app_mention(self, event: AppMentionEvent, log: Any) -> None:
        """
        PURPOSE: Look up the symbols in a mention and reply in its thread.

        Raises:
            HTTPError: 500 "getting quotes" if the backend fails (no reply is
                posted), or 500 "responding to mention" if posting fails.
        """
        log = log.bind(channel=event.channel, ts=event.ts)
        symbols = extract_symbols_from_text(event.text)
        log.info("slack_mention_received", user=event.user, symbols=symbols)

        quotes = []
        if symbols:
            try:
                quotes = await self._bounded(self._market_backend.quote(symbols))
            except Exception as e:
                raise server_error("getting quotes", e) from e
            log.info("slack_quotes_fetched", requested=len(symbols), returned=len(quotes))

        try:
            await self._post(event, compose_reply(quotes))
        except Exception as e:
            await self._send_apology(event, log)
            raise server_error("responding to mention", e) from e

    async def _send_apology(self, event: AppMentionEvent, log: Any) -> None:
        try:
            await self._post(event, text_message(APOLOGY_TEXT))
        except Exception as e:
            log.warning("slack_apology_failed", error=str(e), exception_type=type(e).__name__)

    async def _post(self, event: AppMentionEvent, message: OutboundMessage) -> None:
        await self._bounded(
            self._slack_client.post_message(
                event.channel,
                message,
                thread_ts=event.ts,
                broadcast=True,
            )
        )

    async def _bounded(self, call: Awaitable[T]) -> T:
        if self._upstream_timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=self._upstream_timeout)

    # ════════════════════════════════════════════════════════════════
    # Responses
    # ════════════════════════════════════════════════════════════════

    def _respond_with_error(self, err: HTTPError, log: Any) -> HandlerResponse:
        log_method = log.error if err.status_code >= 500 else log.warning
        log_method(
            "slack_event_request_failed",
            status_code=err.status_code,
            error=err.message,
            causes=err.cause_chain(),
        )
        return HandlerResponse(status_code=err.status_code, body=err.to_response())
