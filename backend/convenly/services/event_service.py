"""
Event service: thin orchestration over the event catalog.

The only rule added here is ownership: an event may be deleted by its organizer only.
That check needs event data, so it lives here rather than in the role gate.
"""

import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

import structlog

from convenly.core.exceptions import DuplicateRegistration, NotEventOrganizer, NotFoundError
from convenly.core.metrics import filter_query_latency, record_attendance
from convenly.domain.filters import EventFilter, Pagination
from convenly.models.event import Event
from convenly.models.tag import Tag
from convenly.repositories.events import EventRepository
from convenly.repositories.tags import TagRepository


@dataclass(frozen=True)
class EventDetail:
    event: Event
    attendees_count: int
    user_registered: bool


class EventService:
    def __init__(
        self,
        events: EventRepository,
        tags: TagRepository,
        logger: structlog.stdlib.BoundLogger,
    ):
        self.events = events
        self.tags = tags
        self.logger = logger

    async def create_event(
        self,
        organizer_id: uuid.UUID,
        name: str,
        date: datetime,
        latitude: float,
        longitude: float,
        fee: float = 0.0,
        description: str = "",
        tags: Sequence[str] = (),
    ) -> Event:
        event = Event(
            name=name,
            description=description or "",
            date=date,
            latitude=latitude,
            longitude=longitude,
            fee=fee,
            organizer_id=organizer_id,
        )
        await self.events.save(event, tags)
        self.logger.info("event_created", event_id=str(event.id), organizer_id=str(organizer_id))
        return event

    async def get_event(self, event_id: uuid.UUID) -> Event:
        return await self.events.find_by_id(event_id)

    async def get_event_detail(self, event_id: uuid.UUID, viewer_id: Optional[uuid.UUID]) -> EventDetail:
        event = await self.events.find_by_id(event_id)
        attendees = await self.events.get_attendees(event_id)
        return EventDetail(
            event=event,
            attendees_count=len(attendees),
            user_registered=viewer_id is not None and viewer_id in attendees,
        )

    async def get_all_events(self) -> list[Event]:
        return await self.events.find_all()

    async def get_events_with_filters(self, event_filter: EventFilter) -> list[Event]:
        started = time.perf_counter()
        events = await self.events.find_all_with_filters(event_filter)
        filter_query_latency.observe(time.perf_counter() - started)
        return events

    async def get_events_by_tags(self, tag_names: Sequence[str]) -> list[Event]:
        return await self.events.find_all_by_tags(tag_names)

    async def get_hosting_events(
        self, user_id: uuid.UUID, pagination: Optional[Pagination] = None
    ) -> list[Event]:
        return await self.events.find_by_organizer(user_id, pagination)

    async def get_attending_events(
        self, user_id: uuid.UUID, pagination: Optional[Pagination] = None
    ) -> list[Event]:
        return await self.events.find_attending_events(user_id, pagination)

    async def register_attendance(self, user_id: uuid.UUID, event_id: uuid.UUID) -> None:
        try:
            await self.events.register_attendance(user_id, event_id)
        except DuplicateRegistration:
            record_attendance("register", "duplicate")
            self.logger.info("attendance_duplicate", user_id=str(user_id), event_id=str(event_id))
            raise
        except NotFoundError:
            record_attendance("register", "missing")
            raise
        record_attendance("register", "success")
        self.logger.info("attendance_registered", user_id=str(user_id), event_id=str(event_id))

    async def remove_attendance(self, user_id: uuid.UUID, event_id: uuid.UUID) -> None:
        await self.events.remove_attendance(user_id, event_id)
        record_attendance("remove", "success")
        self.logger.info("attendance_removed", user_id=str(user_id), event_id=str(event_id))

    async def get_attendees(self, event_id: uuid.UUID) -> list[uuid.UUID]:
        return await self.events.get_attendees(event_id)

    async def delete_event(self, event_id: uuid.UUID, requester_id: uuid.UUID) -> None:
        event = await self.events.find_by_id(event_id)
        if event.organizer_id != requester_id:
            self.logger.warning(
                "event_delete_forbidden",
                event_id=str(event_id),
                requester_id=str(requester_id),
            )
            raise NotEventOrganizer()

        await self.events.delete(event_id)
        self.logger.info("event_deleted", event_id=str(event_id), organizer_id=str(requester_id))

    async def list_tags(self) -> list[Tag]:
        return await self.tags.find_all()
