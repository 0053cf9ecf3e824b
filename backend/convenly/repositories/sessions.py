"""
Session store: maps opaque login tokens to users.

Tokens come from a CSPRNG and are never reused. Resolving a token is read-only;
expired sessions (when a TTL is configured) simply stop resolving.
"""

import uuid
from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from convenly.core.exceptions import SessionNotFound, UserNotFound
from convenly.core.security import generate_session_token
from convenly.db.base import as_utc, utcnow
from convenly.models.session import UserSession
from convenly.models.user import User
from convenly.repositories.base import DEFAULT_OPERATION_TIMEOUT, Repository
from convenly.repositories.users import UserRepository


class SessionRepository(Repository):
    def __init__(
        self,
        db: AsyncSession,
        logger: structlog.stdlib.BoundLogger,
        users: UserRepository,
        ttl_seconds: Optional[int] = None,
        timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ):
        super().__init__(db, logger, timeout)
        self.users = users
        self.ttl_seconds = ttl_seconds

    async def create(self, owner_email: str) -> str:
        """Mint a session for the user owning `owner_email`. Raises UserNotFound."""
        user = await self.users.find_by_email(owner_email)

        now = utcnow()
        expires_at = now + timedelta(seconds=self.ttl_seconds) if self.ttl_seconds else None
        token = generate_session_token()

        async with self._deadline("sessions.create"):
            async with self.db.begin_nested():
                self.db.add(UserSession(token=token, user_id=user.id, created_at=now, expires_at=expires_at))
                await self.db.flush()

        self.logger.info("session_created", user_id=str(user.id), expires_at=expires_at)
        return token

    async def resolve(self, token: str) -> User:
        async with self._deadline("sessions.resolve"):
            result = await self.db.execute(select(UserSession).where(UserSession.token == token))
            session = result.scalar_one_or_none()

        if session is None:
            raise SessionNotFound()
        if session.expires_at is not None and as_utc(session.expires_at) <= utcnow():
            raise SessionNotFound("Session expired")

        try:
            return await self.users.find_by_id(session.user_id)
        except UserNotFound as e:
            raise SessionNotFound() from e

    async def delete(self, token: str) -> None:
        async with self._deadline("sessions.delete"):
            await self.db.execute(delete(UserSession).where(UserSession.token == token))

    async def delete_for_user(self, user_id: uuid.UUID) -> int:
        async with self._deadline("sessions.delete_for_user"):
            result = await self.db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        return result.rowcount
