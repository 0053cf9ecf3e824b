"""
User service handling registration, login, logout and host promotion.
"""

import uuid

import structlog

from convenly.core.exceptions import (
    ConflictError,
    InvalidCredentials,
    UserNotFound,
    ValidationError,
)
from convenly.core.metrics import record_login, record_registration
from convenly.core.security import Hasher
from convenly.domain.identity import Email, Password, Role
from convenly.models.user import User
from convenly.repositories.sessions import SessionRepository
from convenly.repositories.users import UserRepository


class UserService:
    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        hasher: Hasher,
        logger: structlog.stdlib.BoundLogger,
    ):
        self.users = users
        self.sessions = sessions
        self.hasher = hasher
        self.logger = logger

    async def register(self, name: str, raw_email: str, raw_password: str) -> User:
        """
        Register a new attendee.
        Stops at the first validation or persistence failure; nothing is written on error.
        """
        try:
            email = Email.parse(raw_email)
            password = Password.parse(raw_password)
        except ValidationError as e:
            record_registration("invalid_input")
            self.logger.warning("registration_failed", reason=type(e).__name__)
            raise

        user = User(
            name=(name or "").strip(),
            email=str(email),
            password_hash=self.hasher.hash(password.value),
            role=int(Role.ATTENDEE),
        )
        try:
            await self.users.save(user)
        except (ConflictError, ValidationError) as e:
            record_registration("conflict" if isinstance(e, ConflictError) else "invalid_input")
            self.logger.warning("registration_failed", reason=type(e).__name__, email=str(email))
            raise

        record_registration("success")
        self.logger.info("user_registered", user_id=str(user.id), email=user.email)
        return user

    async def login(self, raw_email: str, raw_password: str) -> str:
        """
        Verify credentials and mint a session token.
        Unknown email and wrong password both raise InvalidCredentials.
        """
        try:
            email = Email.parse(raw_email)
            password = Password.parse(raw_password)
        except ValidationError:
            record_login("invalid_input")
            raise

        try:
            user = await self.users.find_by_email(email)
        except UserNotFound:
            record_login("invalid_credentials")
            self.logger.warning("login_failed", reason="unknown_email", email=str(email))
            raise InvalidCredentials() from None

        if not self.hasher.verify(password.value, user.password_hash):
            record_login("invalid_credentials")
            self.logger.warning("login_failed", reason="password_mismatch", user_id=str(user.id))
            raise InvalidCredentials()

        token = await self.sessions.create(user.email)
        record_login("success")
        self.logger.info("user_logged_in", user_id=str(user.id))
        return token

    async def logout(self, token: str) -> None:
        await self.sessions.delete(token)
        self.logger.info("user_logged_out")

    async def logout_everywhere(self, user_id: uuid.UUID) -> int:
        """End every session of the user, the current one included. Returns how many ended."""
        revoked = await self.sessions.delete_for_user(user_id)
        self.logger.info("user_logged_out_everywhere", user_id=str(user_id), sessions_revoked=revoked)
        return revoked

    async def promote_to_host(self, user_id: uuid.UUID) -> User:
        user = await self.users.find_by_id(user_id)
        if user.user_role == Role.HOST:
            return user

        user.role = int(Role.HOST)
        await self.users.update(user)
        self.logger.info("user_promoted", user_id=str(user.id))
        return user

    async def get_by_id(self, user_id: uuid.UUID) -> User:
        return await self.users.find_by_id(user_id)

    async def get_by_email(self, raw_email: str) -> User:
        return await self.users.find_by_email(Email.parse(raw_email))

    async def get_by_session(self, token: str) -> User:
        return await self.sessions.resolve(token)
