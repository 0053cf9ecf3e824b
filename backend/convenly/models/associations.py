"""
Many-to-many association tables.

Composite primary keys collapse duplicate pairs: an event carries a tag at most once,
and a user is registered for an event at most once.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Table, Uuid, func

from convenly.db.base import Base, utcnow

event_tags = Table(
    "event_tags",
    Base.metadata,
    Column("event_id", Uuid, ForeignKey("events.id"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id"), primary_key=True, index=True),
)

attendance = Table(
    "attendance",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id"), primary_key=True),
    Column("event_id", Uuid, ForeignKey("events.id"), primary_key=True, index=True),
    Column(
        "registered_at",
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    ),
)
