"""
PURPOSE: API router initialization and exports for Stonks.

Aggregates the API routers into a single api_router that is included in the
main FastAPI application.
"""

from fastapi import APIRouter

from stonks.api.routes_slack import router as slack_router

api_router = APIRouter()

api_router.include_router(slack_router, tags=["slack"])

__all__ = ["api_router"]
