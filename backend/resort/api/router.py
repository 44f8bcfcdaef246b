"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from resort.api.routes import reservations, sessions, stays

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(stays.router)
api_router.include_router(sessions.router)
api_router.include_router(reservations.router)
