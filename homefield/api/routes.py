"""
API Router
Combines all endpoint routers
"""
from fastapi import APIRouter

from homefield.api.endpoints import (
    admin,
    dialer,
    health,
    intake,
    mission,
    portal,
    settings,
    team,
)

api_router = APIRouter()

api_router.include_router(health.router)

# Public forms
api_router.include_router(intake.router)

# Client portal
api_router.include_router(portal.router)
api_router.include_router(settings.router)
api_router.include_router(team.router)

# Agency staff
api_router.include_router(admin.router)
api_router.include_router(dialer.router)
api_router.include_router(mission.router)
