"""
PURPOSE: Minimal async Slack Web API client for posting replies.

Only chat.postMessage is needed. Slack answers HTTP 200 with {"ok": false,
"error": "..."} for most API-level failures, so both transport errors and
ok=false bodies are raised as SlackAPIError.

CALLED BY: slack/handler.py, main.py (construction and shutdown)
"""

from typing import Any, Dict, Optional

import httpx

from stonks.slack.errors import SlackAPIError
from stonks.slack.messages import OutboundMessage
from stonks.utils.logger import get_logger

logger = get_logger("slack.client")

DEFAULT_API_URL = "https://slack.com/api/"


class SlackClient:
    """
    PURPOSE: Post messages to Slack with a bot token.

    Attributes:
        _token: Bot token (xoxb-...).
        _base_url: Web API base URL, with trailing slash.
        _timeout: Per-request timeout in seconds.
        _client: Lazily created httpx.AsyncClient.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        PURPOSE: Initialise the client.

        Args:
            token: Slack bot token.
            base_url: Web API base URL (overridable for test servers).
            timeout: Request timeout in seconds.
            client: Pre-built client (tests inject one with a MockTransport).
        """
        self._token = token
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout, connect=5.0))
        return self._client

    async def post_message(
        self,
        channel: str,
        message: OutboundMessage,
        thread_ts: Optional[str] = None,
        broadcast: bool = False,
    ) -> Dict[str, Any]:
        """
        PURPOSE: Send one message via chat.postMessage.

        Args:
            channel: Channel ID to post in.
            message: Text or block content.
            thread_ts: Parent message timestamp to reply under.
            broadcast: Also show a thread reply in the channel.

        Returns:
            dict: The decoded Slack response body.

        Raises:
            SlackAPIError: On transport errors, non-2xx status, or ok=false.
        """
        body: Dict[str, Any] = {"channel": channel, **message.to_payload()}
        if thread_ts:
            body["thread_ts"] = thread_ts
            if broadcast:
                body["reply_broadcast"] = True

        data = await self._call("chat.postMessage", body)
        logger.info(
            "slack_message_posted",
            channel=channel,
            thread_ts=thread_ts,
            ts=data.get("ts"),
        )
        return data

    async def _call(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            client = await self._get_client()
            resp = await client.post(
                self._base_url + method,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
                json=body,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise SlackAPIError(f"{method}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise SlackAPIError(f"{method}: {e}") from e
        except ValueError as e:
            raise SlackAPIError(f"{method}: response is not JSON") from e

        if not isinstance(data, dict) or not data.get("ok"):
            error = data.get("error", "unknown_error") if isinstance(data, dict) else "unknown_error"
            raise SlackAPIError(f"{method}: {error}")
        return data

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
