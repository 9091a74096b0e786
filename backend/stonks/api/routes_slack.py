"""
PURPOSE: Slack Events API route for the Stonks bot.

The endpoint is PUBLIC: Slack cannot attach our credentials to its
deliveries. Authenticity is established inside the EventHandler by checking
the X-Slack-Signature HMAC against the raw body, which is why the body is
read as bytes here and never parsed by FastAPI.

Every method is routed to the handler so that non-POST requests get the
same structured 405 body as other failures instead of FastAPI's default.

If the caller hangs up mid-delivery, the in-flight backend or Slack call is
cancelled rather than left running for a response nobody will read.

CALLED BY: Slack Events API (POST /slack/event)
"""

import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from stonks.slack.handler import Delivery, EventHandler
from stonks.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/slack", tags=["slack"])

ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

DISCONNECT_POLL_SECONDS = 0.5

# nginx convention for "client closed request"; nobody reads it.
CLIENT_CLOSED_REQUEST = 499


def get_event_handler(request: Request) -> EventHandler:
    """
    PURPOSE: FastAPI dependency returning the application's EventHandler.

    The handler is built once in create_app and stored on app.state.

    Raises:
        RuntimeError: If the application was created without a handler.
    """
    handler = getattr(request.app.state, "event_handler", None)
    if handler is None:
        raise RuntimeError("EventHandler is not configured on app.state")
    return handler


@router.api_route("/event", methods=ROUTED_METHODS)
async def slack_event(
    request: Request,
    handler: EventHandler = Depends(get_event_handler),
) -> JSONResponse:
    """
    PURPOSE: Receive one Slack Events API delivery.

    Returns:
        200 {"Challenge": "<token>"}: url_verification handshake.
        200 {}:                       app_mention answered.
        4xx/5xx {"status_code", "error"}: see EventHandler.

    CALLED BY: Slack Events API
    """
    body = await request.body()
    delivery = Delivery(
        method=request.method,
        path=request.url.path,
        headers=request.headers,
        body=body,
    )
    handling = asyncio.ensure_future(handler.handle(delivery))
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({handling, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (handling, watcher):
            if not task.done():
                task.cancel()
        # Let the cancelled work unwind before the request scope closes.
        await asyncio.gather(handling, watcher, return_exceptions=True)

    if handling.cancelled():
        logger.warning("slack_event_client_disconnected", path=request.url.path)
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    result = handling.result()
    return JSONResponse(status_code=result.status_code, content=result.body)


async def _wait_for_disconnect(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
