"""
FastAPI dependencies: repositories and services per request, plus the
authentication and role-gate stages.

`get_auth_context` resolves the caller's session before the handler runs and
attaches the result to `request.state.auth`. `require_roles(...)` depends on it,
so an unauthenticated caller is rejected before any role is evaluated.

Configuration is read from `app.state.settings`, the settings the app was built with.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from convenly.core.config import Settings
from convenly.db.session import get_db
from convenly.domain.identity import Role
from convenly.repositories.events import EventRepository
from convenly.repositories.sessions import SessionRepository
from convenly.repositories.tags import TagRepository
from convenly.repositories.users import UserRepository
from convenly.services.auth_service import AuthContext, authenticate, authorize
from convenly.services.cache_service import EventListCache
from convenly.services.event_service import EventService
from convenly.services.user_service import UserService

bearer_token = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_request_logger(request: Request) -> structlog.stdlib.BoundLogger:
    return request.app.state.logger


def get_event_cache(request: Request) -> Optional[EventListCache]:
    return getattr(request.app.state, "event_cache", None)


def get_user_repository(
    db: AsyncSession = Depends(get_db),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
    settings: Settings = Depends(get_app_settings),
) -> UserRepository:
    return UserRepository(db, logger, timeout=settings.DB_OPERATION_TIMEOUT)


def get_session_repository(
    db: AsyncSession = Depends(get_db),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
) -> SessionRepository:
    return SessionRepository(
        db,
        logger,
        users,
        ttl_seconds=settings.SESSION_TTL_SECONDS,
        timeout=settings.DB_OPERATION_TIMEOUT,
    )


def get_tag_repository(
    db: AsyncSession = Depends(get_db),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
    settings: Settings = Depends(get_app_settings),
) -> TagRepository:
    return TagRepository(db, logger, timeout=settings.DB_OPERATION_TIMEOUT)


def get_event_repository(
    db: AsyncSession = Depends(get_db),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
    tags: TagRepository = Depends(get_tag_repository),
    settings: Settings = Depends(get_app_settings),
) -> EventRepository:
    return EventRepository(db, logger, tags, timeout=settings.DB_OPERATION_TIMEOUT)


def get_user_service(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
    sessions: SessionRepository = Depends(get_session_repository),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
) -> UserService:
    return UserService(users, sessions, request.app.state.hasher, logger)


def get_event_service(
    events: EventRepository = Depends(get_event_repository),
    tags: TagRepository = Depends(get_tag_repository),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
) -> EventService:
    return EventService(events, tags, logger)


async def get_auth_context(
    request: Request,
    sessions: SessionRepository = Depends(get_session_repository),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
    settings: Settings = Depends(get_app_settings),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_token),
) -> AuthContext:
    """Session cookie first, then an `Authorization: Bearer` header."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME) or (
        credentials.credentials if credentials else None
    )
    context = await authenticate(sessions, token, logger)
    request.state.auth = context
    return context


def require_roles(*roles: Role):
    """Build a dependency that admits only callers holding one of `roles`."""

    async def role_gate(
        context: AuthContext = Depends(get_auth_context),
        logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
    ) -> AuthContext:
        return authorize(context, roles, logger)

    return role_gate


require_host = require_roles(Role.HOST)
