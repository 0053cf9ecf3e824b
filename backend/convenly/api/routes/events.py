"""
Event endpoints: discovery, hosting and attendance.

Query strings are parsed and validated here; the catalog only ever sees typed,
bounded filters.
"""

import uuid
from datetime import date, datetime, time, timezone
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from convenly.api.deps import (
    get_auth_context,
    get_event_cache,
    get_event_service,
    get_request_logger,
    require_host,
)
from convenly.core.exceptions import InvalidFilter
from convenly.db.session import get_db
from convenly.domain.filters import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, EventFilter, Pagination
from convenly.schemas.event import (
    EventCreate,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    MyEventsResponse,
)
from convenly.schemas.user import StatusResponse
from convenly.services.auth_service import AuthContext
from convenly.services.cache_service import EventListCache
from convenly.services.event_service import EventService

router = APIRouter(prefix="/events", tags=["Events"])


def parse_date_bound(raw: Optional[str], field: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    Accept RFC 3339 timestamps or plain YYYY-MM-DD dates.

    A plain date means the start of that day, or its last instant when `end_of_day`
    is set, so `date_to=2026-03-01` still includes events later on March 1st.
    Naive timestamps are read as UTC.
    """
    if raw is None or not raw.strip():
        return None
    raw = raw.strip()

    try:
        day = date.fromisoformat(raw)
    except ValueError:
        day = None
    if day is not None and len(raw) == 10:
        return datetime.combine(day, time.max if end_of_day else time.min, tzinfo=timezone.utc)

    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidFilter(f"invalid {field} format, use RFC3339 or YYYY-MM-DD") from None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def get_event_filter(
    date_from: Optional[str] = Query(None, description="RFC3339 or YYYY-MM-DD, inclusive"),
    date_to: Optional[str] = Query(None, description="RFC3339 or YYYY-MM-DD, inclusive"),
    min_fee: Optional[float] = Query(None, ge=0),
    max_fee: Optional[float] = Query(None, ge=0),
    tags: Optional[str] = Query(None, description="Comma-separated tag names; matches any"),
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=MAX_PAGE_SIZE),
) -> EventFilter:
    pagination = None
    if page is not None or page_size is not None:
        pagination = Pagination(page=page or 1, page_size=page_size or DEFAULT_PAGE_SIZE)

    tag_names: tuple[str, ...] = ()
    if tags:
        tag_names = tuple(dict.fromkeys(name.strip() for name in tags.split(",") if name.strip()))

    return EventFilter(
        date_from=parse_date_bound(date_from, "date_from"),
        date_to=parse_date_bound(date_to, "date_to", end_of_day=True),
        min_fee=min_fee,
        max_fee=max_fee,
        tags=tag_names,
        pagination=pagination,
    )


def get_pagination(
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=MAX_PAGE_SIZE),
) -> Optional[Pagination]:
    if page is None and page_size is None:
        return None
    return Pagination(page=page or 1, page_size=page_size or DEFAULT_PAGE_SIZE)


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    event_filter: EventFilter = Depends(get_event_filter),
    event_service: EventService = Depends(get_event_service),
    cache: Optional[EventListCache] = Depends(get_event_cache),
    logger: structlog.stdlib.BoundLogger = Depends(get_request_logger),
):
    """
    List events ordered by date, optionally filtered.
    Results are cached in Redis; the cache is invalidated when events are created or deleted.
    """
    if cache is not None:
        cached = await cache.get(event_filter)
        if cached:
            logger.info("events_list_cache_hit", filter=event_filter.cache_key())
            cached["cached"] = True
            return EventListResponse(**cached)

    events = await event_service.get_events_with_filters(event_filter)
    logger.info("events_listed", filtered=event_filter.has_predicates, count=len(events))

    pagination = event_filter.pagination
    response_data = {
        "events": [EventResponse.model_validate(e).model_dump(mode="json") for e in events],
        "page": pagination.page if pagination else None,
        "page_size": pagination.page_size if pagination else None,
        "cached": False,
    }

    if cache is not None:
        await cache.set(event_filter, response_data)

    return EventListResponse(**response_data)


@router.get("/mine", response_model=MyEventsResponse)
async def my_events_endpoint(
    pagination: Optional[Pagination] = Depends(get_pagination),
    context: AuthContext = Depends(get_auth_context),
    event_service: EventService = Depends(get_event_service),
):
    """Events the caller hosts and events the caller attends."""
    hosting = await event_service.get_hosting_events(context.user_id, pagination)
    attending = await event_service.get_attending_events(context.user_id, pagination)
    return MyEventsResponse(
        hosting=[EventResponse.model_validate(e) for e in hosting],
        attending=[EventResponse.model_validate(e) for e in attending],
    )


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    context: AuthContext = Depends(require_host),
    event_service: EventService = Depends(get_event_service),
    cache: Optional[EventListCache] = Depends(get_event_cache),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. Requires the HOST role."""
    event = await event_service.create_event(
        organizer_id=context.user_id,
        name=event_data.name,
        description=event_data.description or "",
        date=event_data.date,
        latitude=event_data.latitude,
        longitude=event_data.longitude,
        fee=event_data.fee,
        tags=event_data.tags,
    )
    if cache is not None:
        await cache.invalidate_after_commit(db)
    return event


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(
    event_id: uuid.UUID,
    context: AuthContext = Depends(get_auth_context),
    event_service: EventService = Depends(get_event_service),
):
    """Event with its attendee count and whether the caller is registered."""
    detail = await event_service.get_event_detail(event_id, context.user_id)
    return EventDetailResponse(
        **EventResponse.model_validate(detail.event).model_dump(),
        attendees_count=detail.attendees_count,
        user_registered=detail.user_registered,
    )


@router.delete("/{event_id}", response_model=StatusResponse)
async def delete_event_endpoint(
    event_id: uuid.UUID,
    context: AuthContext = Depends(require_host),
    event_service: EventService = Depends(get_event_service),
    cache: Optional[EventListCache] = Depends(get_event_cache),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event. Only its organizer may do this."""
    await event_service.delete_event(event_id, context.user_id)
    if cache is not None:
        await cache.invalidate_after_commit(db)
    return StatusResponse()


@router.post("/{event_id}/attendance", response_model=StatusResponse)
async def register_attendance_endpoint(
    event_id: uuid.UUID,
    context: AuthContext = Depends(get_auth_context),
    event_service: EventService = Depends(get_event_service),
):
    """Register the caller for an event. A second registration returns 409."""
    await event_service.register_attendance(context.user_id, event_id)
    return StatusResponse()


@router.delete("/{event_id}/attendance", response_model=StatusResponse)
async def remove_attendance_endpoint(
    event_id: uuid.UUID,
    context: AuthContext = Depends(get_auth_context),
    event_service: EventService = Depends(get_event_service),
):
    """Unregister the caller. Succeeds even if the caller was not registered."""
    await event_service.remove_attendance(context.user_id, event_id)
    return StatusResponse()
