"""
PURPOSE: Pydantic models and parser for Slack Events API envelopes.

Two envelope kinds are recognised, discriminated by "type":
    - url_verification: the handshake Slack sends when the request URL is configured
    - event_callback:   a wrapped application event

Inside a callback the application event is itself discriminated. Only
app_mention is modelled in full; every other kind parses into
UnhandledInnerEvent so the dispatch handler can refuse it explicitly.

The legacy verification "token" is parsed but never checked. Request
signatures (slack/signature.py) are the only trust mechanism.

CALLED BY: slack/handler.py
"""

import json
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
)

from stonks.slack.errors import MalformedPayloadError, UnrecognizedEnvelopeError

URL_VERIFICATION = "url_verification"
EVENT_CALLBACK = "event_callback"
APP_MENTION = "app_mention"

ENVELOPE_TYPES = frozenset({URL_VERIFICATION, EVENT_CALLBACK})


# ════════════════════════════════════════════════════════════════
# Inner events
# ════════════════════════════════════════════════════════════════


class AppMentionEvent(BaseModel):
    """
    PURPOSE: The bot was @-mentioned in a channel message.

    Attributes:
        user:      ID of the user who wrote the message.
        text:      Raw message text, including the <@BOT> mention markup.
        ts:        Timestamp of the message; replies thread under it.
        channel:   Channel the message was posted in.
        event_ts:  Timestamp of the event itself.
        thread_ts: Parent thread timestamp when the mention is a thread reply.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["app_mention"]
    user: str = ""
    text: str = ""
    ts: str
    channel: str
    event_ts: str = ""
    thread_ts: Optional[str] = None


class UnhandledInnerEvent(BaseModel):
    """Any inner event kind this service does not act on."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = ""


def _inner_event_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return APP_MENTION if kind == APP_MENTION else "unhandled"


InnerEvent = Annotated[
    Union[
        Annotated[AppMentionEvent, Tag(APP_MENTION)],
        Annotated[UnhandledInnerEvent, Tag("unhandled")],
    ],
    Discriminator(_inner_event_tag),
]


# ════════════════════════════════════════════════════════════════
# Envelopes
# ════════════════════════════════════════════════════════════════


class URLVerificationEvent(BaseModel):
    """Handshake request; the challenge must be echoed back."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["url_verification"]
    token: str = ""
    challenge: str


class EventCallback(BaseModel):
    """
    PURPOSE: Outer wrapper for an application event delivered by Slack.

    Attributes:
        event:        The discriminated inner event.
        team_id:      Workspace the event came from.
        api_app_id:   The receiving Slack app.
        event_id:     Unique ID for this delivery of the event.
        event_time:   Epoch seconds when the event was dispatched.
        authed_users: Users the event is visible to.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Literal["event_callback"]
    token: str = ""
    team_id: str = ""
    api_app_id: str = ""
    event: InnerEvent
    event_id: str = ""
    event_time: int = 0
    authed_users: List[str] = Field(default_factory=list)


EventEnvelope = Annotated[
    Union[URLVerificationEvent, EventCallback],
    Field(discriminator="type"),
]

_envelope_adapter: TypeAdapter = TypeAdapter(EventEnvelope)


def parse_event(body: bytes) -> Union[URLVerificationEvent, EventCallback]:
    """
    PURPOSE: Decode a verified raw request body into a typed envelope.

    Args:
        body: Raw JSON body of the delivery.

    Returns:
        URLVerificationEvent | EventCallback

    Raises:
        MalformedPayloadError: Body is not a JSON object, or a recognised
            envelope is missing required fields.
        UnrecognizedEnvelopeError: The envelope "type" is not one we know.
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise MalformedPayloadError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedPayloadError(f"expected a JSON object, got {type(data).__name__}")

    kind = data.get("type")
    if not isinstance(kind, str) or kind not in ENVELOPE_TYPES:
        raise UnrecognizedEnvelopeError("" if kind is None else str(kind))

    try:
        return _envelope_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedPayloadError(
            f"invalid {kind} payload: {e.error_count()} validation error(s)"
        ) from e
