"""API v1 module."""

from fastapi import APIRouter

from gamebridge.api.v1.endpoints import health, leaderboard, matches, purchase

api_router = APIRouter()

# Include routers
api_router.include_router(purchase.router)
api_router.include_router(matches.router)
api_router.include_router(leaderboard.router)
api_router.include_router(health.router)
