"""
PURPOSE: FastAPI application factory, lifecycle management and entry point for Stonks.

Initializes the FastAPI application with:
- The Slack event router
- An EventHandler wired to the Slack client and market backend
- Exception handlers for routing errors and unexpected errors
- Shutdown of outbound HTTP clients
- Metadata from version.json
"""

import argparse
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stonks.api import api_router
from stonks.config.settings import Settings, settings as default_settings
from stonks.market import create_market_backend
from stonks.slack.client import SlackClient
from stonks.slack.handler import EventHandler
from stonks.utils.logger import get_logger, setup_logging
from stonks.version import get_version

logger = get_logger(__name__)


# ════════════════════════════════════════════════════════════════
# Wiring
# ════════════════════════════════════════════════════════════════


def build_event_handler(settings: Settings) -> EventHandler:
    """
    PURPOSE: Construct the EventHandler and its collaborators from settings.

    CALLED BY: create_app

    Args:
        settings: Application settings.

    Returns:
        EventHandler: Handler with Slack client and market backend attached.

    Raises:
        ValueError: If MARKET_BACKEND is unknown.
    """
    slack_client = SlackClient(
        token=settings.SLACK_BOT_TOKEN,
        base_url=settings.SLACK_API_URL,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
    return EventHandler(
        slack_client=slack_client,
        signing_secret=settings.SLACK_SIGNING_SECRET,
        market_backend=create_market_backend(settings),
        max_signature_age=settings.SLACK_SIGNATURE_MAX_AGE_SECONDS,
        upstream_timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )


# ════════════════════════════════════════════════════════════════
# Exception Handlers
# ════════════════════════════════════════════════════════════════


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    PURPOSE: Render routing-level HTTP errors in the {"status_code", "error"} shape.

    Starlette raises these before any route runs: an unknown path, or a
    method the route does not accept.

    CALLED BY: FastAPI exception handler middleware
    """
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = f"invalid method: {request.method}"
    else:
        message = str(exc.detail)

    logger.warning(
        "http_request_rejected",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error=message,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"status_code": exc.status_code, "error": message},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    PURPOSE: Handle unexpected exceptions with logging and a safe error response.

    Uses the same {"status_code", "error"} shape as the Slack endpoint.

    CALLED BY: FastAPI exception handler middleware
    """
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exception_type=type(exc).__name__,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "error": "internal server error",
        },
    )


# ════════════════════════════════════════════════════════════════
# FastAPI Application Factory
# ════════════════════════════════════════════════════════════════


def create_app(
    settings: Optional[Settings] = None,
    event_handler: Optional[EventHandler] = None,
) -> FastAPI:
    """
    PURPOSE: Create and configure the FastAPI application.

    CALLED BY: main(), tests

    Args:
        settings: Settings to use; the module-level settings when omitted.
        event_handler: Pre-built handler (tests inject fakes); built from
            settings when omitted.

    Returns:
        FastAPI: Configured application.

    Raises:
        ValueError: If the signing secret policy is violated.
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    # Refuse to start without a signing secret where one is mandatory.
    settings.validate_signing_secret()
    if not settings.signature_verification_enabled():
        logger.warning(
            "slack_signing_secret_empty",
            message="Request signature verification is disabled. Do not expose this instance publicly.",
            app_env=settings.APP_ENV,
        )

    try:
        version = get_version().get("version", "unknown")
    except Exception as e:
        logger.warning("version_data_unavailable", error=str(e))
        version = "unknown"

    handler = event_handler or build_event_handler(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "application_startup_complete",
            version=version,
            log_level=settings.LOG_LEVEL,
            market_backend=settings.MARKET_BACKEND,
        )
        yield
        try:
            await app.state.event_handler.aclose()
        except Exception as e:
            logger.error("application_shutdown_error", error=str(e))
        logger.info("application_shutdown_complete")

    app = FastAPI(
        title="Stonks",
        description="Slack bot replying to mentions with market quotes",
        version=version,
        lifespan=lifespan,
    )
    app.state.event_handler = handler
    app.state.settings = settings

    app.include_router(api_router)

    @app.get("/", tags=["root"])
    async def root():
        """
        PURPOSE: Root endpoint for availability checks.

        CALLED BY: Load balancers, basic connectivity tests
        """
        return {
            "status": "ok",
            "service": "stonks",
            "version": version,
        }

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("fastapi_application_created", version=version)
    return app


# ════════════════════════════════════════════════════════════════
# Entry Point
# ════════════════════════════════════════════════════════════════


def parse_args(argv: Optional[List[str]], settings: Settings) -> Settings:
    """
    PURPOSE: Apply command line overrides on top of environment settings.

    Args:
        argv: Arguments (sys.argv[1:] when None).
        settings: Settings loaded from the environment; used as defaults.

    Returns:
        Settings: A copy with the overrides applied.
    """
    parser = argparse.ArgumentParser(prog="stonks", description="Slack market quote bot.")
    parser.add_argument("--addr", default=settings.ADDR, help="Address to listen on.")
    parser.add_argument("--slack-bot-token", default=settings.SLACK_BOT_TOKEN, help="Slack token to use.")
    parser.add_argument(
        "--slack-signing-secret",
        default=settings.SLACK_SIGNING_SECRET,
        help="Slack signing secret for request events.",
    )
    args = parser.parse_args(argv)

    return settings.model_copy(
        update={
            "ADDR": args.addr,
            "SLACK_BOT_TOKEN": args.slack_bot_token,
            "SLACK_SIGNING_SECRET": args.slack_signing_secret,
        }
    )


def main(argv: Optional[List[str]] = None) -> None:
    """
    PURPOSE: Run the bot under uvicorn until interrupted.

    Usage:
        stonks --addr 0.0.0.0:8080
        OR
        python -m stonks
    """
    import uvicorn

    settings = parse_args(argv, default_settings)
    app = create_app(settings)

    logger.info("slack_http_server_starting", addr=settings.ADDR)
    uvicorn.run(
        app,
        host=settings.listen_host(),
        port=settings.listen_port(),
        log_level=settings.LOG_LEVEL.lower(),
        timeout_graceful_shutdown=settings.SHUTDOWN_TIMEOUT_SECONDS,
    )


if __name__ == "__main__":
    main()
