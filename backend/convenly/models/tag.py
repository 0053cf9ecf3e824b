"""
Tag model: canonical category labels attached to events.
"""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from convenly.db.base import Base


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False)

    __table_args__ = (
        UniqueConstraint("name", name="uq_tags_name"),
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name})>"
