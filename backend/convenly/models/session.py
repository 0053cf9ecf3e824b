"""
Login session: an opaque token mapped to exactly one user.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid, func

from convenly.db.base import Base, utcnow


class UserSession(Base):
    __tablename__ = "sessions"

    token = Column(String(64), primary_key=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<UserSession(user={self.user_id}, expires_at={self.expires_at})>"
