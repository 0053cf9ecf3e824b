"""
Tag registry with find-or-create semantics.

Concurrent creators of the same tag race on the `uq_tags_name` constraint. The loser's
insert fails inside its own SAVEPOINT, after which it re-reads and returns the
winner's row, so `create_if_not_exists` is idempotent under concurrency.
"""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from convenly.core.exceptions import StoreError
from convenly.models.tag import Tag
from convenly.repositories.base import Repository

DEFAULT_TAG_NAMES: tuple[str, ...] = (
    "Music",
    "Sports",
    "Food & Drink",
    "Networking",
    "Workshop",
    "Party",
    "Conference",
    "Meetup",
    "Art",
    "Charity",
    "Outdoor",
    "Gaming",
    "Tech",
    "Health & Wellness",
    "Education",
)


class TagRepository(Repository):

    async def find_all(self) -> list[Tag]:
        async with self._deadline("tags.find_all"):
            result = await self.db.execute(select(Tag).order_by(Tag.name.asc()))
            return list(result.scalars().all())

    async def find_by_name(self, name: str) -> Optional[Tag]:
        """Absence is not an error: returns None when no such tag exists."""
        async with self._deadline("tags.find_by_name"):
            result = await self.db.execute(select(Tag).where(Tag.name == name))
            return result.scalar_one_or_none()

    async def find_by_names(self, names: Iterable[str]) -> list[Tag]:
        wanted = list(dict.fromkeys(names))
        if not wanted:
            return []
        async with self._deadline("tags.find_by_names"):
            result = await self.db.execute(select(Tag).where(Tag.name.in_(wanted)))
            return list(result.scalars().all())

    async def create_if_not_exists(self, name: str) -> Tag:
        existing = await self.find_by_name(name)
        if existing is not None:
            return existing

        async with self._deadline("tags.create"):
            tag = Tag(name=name)
            try:
                async with self.db.begin_nested():
                    self.db.add(tag)
                    await self.db.flush()
            except IntegrityError as e:
                existing = await self.find_by_name(name)
                if existing is not None:
                    self.logger.info("tag_create_race_recovered", name=name)
                    return existing
                raise StoreError(f"Could not create tag {name!r}") from e

        self.logger.info("tag_created", tag_id=tag.id, name=name)
        return tag

    async def seed_defaults(self) -> None:
        for name in DEFAULT_TAG_NAMES:
            await self.create_if_not_exists(name)
