"""
Event model.

Key design decisions:
- `date` is stored in UTC and indexed; every listing is ordered by it
- `fee` carries a CHECK so negative prices never reach the table
- tags are a many-to-many through `event_tags`, loaded with selectin so async
  code never triggers a lazy load
"""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import relationship

from convenly.db.base import Base, TimestampMixin
from convenly.models.associations import event_tags


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=False, default="")
    date = Column(DateTime(timezone=True), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    fee = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    organizer_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    tags = relationship("Tag", secondary=event_tags, lazy="selectin", order_by="Tag.name")

    __table_args__ = (
        CheckConstraint("fee >= 0", name="ck_events_fee_non_negative"),
        Index("ix_events_date", "date"),
        Index("ix_events_fee", "fee"),
    )

    @property
    def tag_names(self) -> list[str]:
        return [tag.name for tag in self.tags]

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, date={self.date})>"
