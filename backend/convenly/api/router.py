"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from convenly.api.routes import auth, events, tags, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(tags.router)
api_router.include_router(events.router)
