"""
User model. Passwords are only ever stored as a one-way digest.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, Integer, String, UniqueConstraint, Uuid

from convenly.db.base import Base, TimestampMixin
from convenly.domain.identity import Role


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    # Stored already normalized (trimmed, lower case), so a plain unique
    # constraint gives case-insensitive uniqueness.
    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Integer, nullable=False, default=int(Role.ATTENDEE))

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint("length(name) >= 3", name="ck_users_name_len"),
        CheckConstraint("email LIKE '%_@_%'", name="ck_users_email_format"),
        CheckConstraint("role IN (0, 1)", name="ck_users_role"),
    )

    @property
    def user_role(self) -> Role:
        return Role(self.role)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
