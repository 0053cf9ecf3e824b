"""
Event catalog: events, their tag associations, attendance, and the filtered query.

CONSISTENCY STRATEGY
====================

Multi-statement writes (save with tags, cascading delete) run inside one SAVEPOINT:
either every row lands or none does, and the surrounding request transaction stays
usable for the caller to report the error.

Attendance uniqueness is enforced by the (user_id, event_id) primary key, not by a
read-then-insert check, so two concurrent registrations cannot both succeed.

Query engine
------------
`build_filter_query` composes only the predicates that are present, each one a bound
parameter, ANDed together. Tag matching is OR across names and joins through
`event_tags`, so the query is DISTINCT to drop the duplicate rows an event matching
several tags would produce. Results are always ordered by date (id breaks ties),
which is what makes offset pagination stable.
"""

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import Select, delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from convenly.core.exceptions import (
    DuplicateRegistration,
    EventNotFound,
    ForeignKeyViolation,
    OrganizerNotFound,
    UnknownTag,
)
from convenly.db.base import as_utc
from convenly.db.errors import is_foreign_key_violation, is_unique_violation
from convenly.domain.filters import EventFilter, Pagination
from convenly.models.associations import attendance, event_tags
from convenly.models.event import Event
from convenly.models.tag import Tag
from convenly.models.user import User
from convenly.repositories.base import DEFAULT_OPERATION_TIMEOUT, Repository
from convenly.repositories.tags import TagRepository


def _ordered(stmt: Select) -> Select:
    return stmt.order_by(Event.date.asc(), Event.id.asc())


def _paginate(stmt: Select, pagination: Optional[Pagination]) -> Select:
    if pagination is None:
        return stmt
    return stmt.offset(pagination.offset).limit(pagination.limit)


def build_filter_query(event_filter: EventFilter) -> Select:
    stmt = select(Event)

    if event_filter.tags:
        stmt = (
            stmt.join(event_tags, event_tags.c.event_id == Event.id)
            .join(Tag, Tag.id == event_tags.c.tag_id)
            .where(Tag.name.in_(list(event_filter.tags)))
            .distinct()
        )

    if event_filter.date_from is not None:
        stmt = stmt.where(Event.date >= as_utc(event_filter.date_from))
    if event_filter.date_to is not None:
        stmt = stmt.where(Event.date <= as_utc(event_filter.date_to))

    if event_filter.min_fee is not None:
        stmt = stmt.where(Event.fee >= event_filter.min_fee)
    if event_filter.max_fee is not None:
        stmt = stmt.where(Event.fee <= event_filter.max_fee)

    return _paginate(_ordered(stmt), event_filter.pagination)


class EventRepository(Repository):
    def __init__(
        self,
        db: AsyncSession,
        logger: structlog.stdlib.BoundLogger,
        tags: TagRepository,
        timeout: float = DEFAULT_OPERATION_TIMEOUT,
    ):
        super().__init__(db, logger, timeout)
        self.tags = tags

    async def _fetch(self, stmt: Select, operation: str) -> list[Event]:
        async with self._deadline(operation):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    async def save(self, event: Event, tag_names: Sequence[str] = ()) -> Event:
        """
        Persist an event and its tag associations atomically.

        Raises OrganizerNotFound if the organizer does not exist and UnknownTag if any
        named tag is missing; in both cases nothing is written.
        """
        names = list(dict.fromkeys(name.strip() for name in tag_names if name and name.strip()))
        event.date = as_utc(event.date)

        async with self._deadline("events.save"):
            try:
                async with self.db.begin_nested():
                    if await self.db.get(User, event.organizer_id) is None:
                        raise OrganizerNotFound()

                    tags = await self.tags.find_by_names(names)
                    missing = set(names) - {tag.name for tag in tags}
                    if missing:
                        raise UnknownTag(missing)

                    event.tags = tags
                    self.db.add(event)
                    await self.db.flush()
            except IntegrityError as e:
                if is_foreign_key_violation(e):
                    raise OrganizerNotFound() from e
                raise

        self.logger.info("event_saved", event_id=str(event.id), tags=names)
        return event

    async def find_by_id(self, event_id: uuid.UUID) -> Event:
        async with self._deadline("events.find_by_id"):
            result = await self.db.execute(select(Event).where(Event.id == event_id))
            event = result.scalar_one_or_none()
        if event is None:
            raise EventNotFound()
        return event

    async def find_all(self) -> list[Event]:
        return await self._fetch(_ordered(select(Event)), "events.find_all")

    async def find_all_with_filters(self, event_filter: EventFilter) -> list[Event]:
        return await self._fetch(build_filter_query(event_filter), "events.find_all_with_filters")

    async def find_all_by_tags(self, tag_names: Sequence[str]) -> list[Event]:
        # An empty tag list matches nothing, not everything.
        if not tag_names:
            return []
        return await self.find_all_with_filters(EventFilter(tags=tuple(tag_names)))

    async def find_by_organizer(
        self, user_id: uuid.UUID, pagination: Optional[Pagination] = None
    ) -> list[Event]:
        stmt = _ordered(select(Event).where(Event.organizer_id == user_id))
        return await self._fetch(_paginate(stmt, pagination), "events.find_by_organizer")

    async def find_attending_events(
        self, user_id: uuid.UUID, pagination: Optional[Pagination] = None
    ) -> list[Event]:
        stmt = _ordered(
            select(Event)
            .join(attendance, attendance.c.event_id == Event.id)
            .where(attendance.c.user_id == user_id)
        )
        return await self._fetch(_paginate(stmt, pagination), "events.find_attending_events")

    async def register_attendance(self, user_id: uuid.UUID, event_id: uuid.UUID) -> None:
        async with self._deadline("events.register_attendance"):
            try:
                async with self.db.begin_nested():
                    await self.db.execute(insert(attendance).values(user_id=user_id, event_id=event_id))
            except IntegrityError as e:
                if is_unique_violation(e):
                    raise DuplicateRegistration() from e
                if is_foreign_key_violation(e):
                    raise ForeignKeyViolation() from e
                raise

    async def remove_attendance(self, user_id: uuid.UUID, event_id: uuid.UUID) -> None:
        async with self._deadline("events.remove_attendance"):
            await self.db.execute(
                delete(attendance).where(
                    attendance.c.user_id == user_id,
                    attendance.c.event_id == event_id,
                )
            )

    async def get_attendees(self, event_id: uuid.UUID) -> list[uuid.UUID]:
        async with self._deadline("events.get_attendees"):
            result = await self.db.execute(
                select(attendance.c.user_id)
                .where(attendance.c.event_id == event_id)
                .order_by(attendance.c.registered_at.asc())
            )
            return list(result.scalars().all())

    async def delete(self, event_id: uuid.UUID) -> None:
        """Remove tag associations, then attendance, then the event row, as one unit."""
        async with self._deadline("events.delete"):
            async with self.db.begin_nested():
                await self.db.execute(delete(event_tags).where(event_tags.c.event_id == event_id))
                await self.db.execute(delete(attendance).where(attendance.c.event_id == event_id))
                result = await self.db.execute(delete(Event).where(Event.id == event_id))
                if result.rowcount == 0:
                    raise EventNotFound()

        self.logger.info("event_deleted", event_id=str(event_id))
