"""
User directory: persistence and lookup of user records.
"""

import uuid
from typing import Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from convenly.core.exceptions import (
    ConvenlyError,
    EmailAlreadyExists,
    InvalidEmailFormat,
    NameTooShort,
    StoreError,
    UserNotFound,
)
from convenly.db.errors import is_check_violation, is_unique_violation, mentions
from convenly.domain.identity import Email
from convenly.models.user import User
from convenly.repositories.base import Repository


def _map_integrity_error(exc: IntegrityError) -> ConvenlyError:
    if is_unique_violation(exc) and mentions(exc, "uq_users_email", "users.email"):
        return EmailAlreadyExists()
    if is_check_violation(exc):
        if mentions(exc, "ck_users_name_len"):
            return NameTooShort()
        if mentions(exc, "ck_users_email_format"):
            return InvalidEmailFormat()
    return StoreError("user write violated a constraint")


class UserRepository(Repository):

    async def save(self, user: User) -> User:
        async with self._deadline("users.save"):
            try:
                async with self.db.begin_nested():
                    self.db.add(user)
                    await self.db.flush()
            except IntegrityError as e:
                raise _map_integrity_error(e) from e
        return user

    async def update(self, user: User) -> User:
        async with self._deadline("users.update"):
            try:
                async with self.db.begin_nested():
                    self.db.add(user)
                    await self.db.flush()
            except IntegrityError as e:
                raise _map_integrity_error(e) from e
        return user

    async def find_by_email(self, email: Union[Email, str]) -> User:
        normalized = str(email).strip().lower()
        async with self._deadline("users.find_by_email"):
            result = await self.db.execute(select(User).where(User.email == normalized))
            user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFound()
        return user

    async def find_by_id(self, user_id: uuid.UUID) -> User:
        async with self._deadline("users.find_by_id"):
            result = await self.db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFound()
        return user
