"""
Tests for the event catalog: persistence, the filtered query and cascading delete.
"""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from convenly.core.exceptions import EventNotFound, OrganizerNotFound, UnknownTag
from convenly.domain.filters import EventFilter, Pagination
from convenly.models.associations import attendance, event_tags
from convenly.models.event import Event


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


async def _count(db_session, table, event_id):
    result = await db_session.execute(
        select(func.count()).select_from(table).where(table.c.event_id == event_id)
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_save_collapses_duplicate_tags(make_event):
    event = await make_event(tags=["Music", "Music", " Tech "])
    assert sorted(event.tag_names) == ["Music", "Tech"]


@pytest.mark.asyncio
async def test_save_unknown_tag_writes_nothing(events, db_session, host, seeded_tags):
    """An unknown tag aborts the whole save; no partial event remains."""
    event = Event(
        name="Ghost Party",
        date=utc(2026, 5, 1),
        latitude=0.0,
        longitude=0.0,
        fee=0,
        organizer_id=host.id,
    )
    with pytest.raises(UnknownTag) as exc_info:
        await events.save(event, ["Music", "Knitting", "Basket Weaving"])

    assert exc_info.value.names == ["Basket Weaving", "Knitting"]
    assert await events.find_all() == []


@pytest.mark.asyncio
async def test_save_missing_organizer(events, seeded_tags):
    event = Event(
        name="Orphan Meetup",
        date=utc(2026, 5, 1),
        latitude=0.0,
        longitude=0.0,
        fee=0,
        organizer_id=uuid.uuid4(),
    )
    with pytest.raises(OrganizerNotFound):
        await events.save(event, ["Meetup"])
    assert await events.find_all() == []


@pytest.mark.asyncio
async def test_find_by_id_missing(events):
    with pytest.raises(EventNotFound):
        await events.find_by_id(uuid.uuid4())


@pytest.mark.asyncio
async def test_find_all_ordered_by_date(events, make_event):
    await make_event(name="March", date=utc(2026, 3, 1))
    await make_event(name="January", date=utc(2026, 1, 1))
    await make_event(name="February", date=utc(2026, 2, 1))

    assert [e.name for e in await events.find_all()] == ["January", "February", "March"]


@pytest.mark.asyncio
async def test_filter_date_from(events, make_event):
    """date_from=Feb 1 returns exactly Feb and Mar, ascending."""
    await make_event(name="January", date=utc(2026, 1, 15))
    await make_event(name="March", date=utc(2026, 3, 15))
    await make_event(name="February", date=utc(2026, 2, 15))

    result = await events.find_all_with_filters(EventFilter(date_from=utc(2026, 2, 1, 0)))
    assert [e.name for e in result] == ["February", "March"]


@pytest.mark.asyncio
async def test_filter_date_bounds_are_inclusive(events, make_event):
    await make_event(name="Edge", date=utc(2026, 2, 1, 9))

    result = await events.find_all_with_filters(
        EventFilter(date_from=utc(2026, 2, 1, 9), date_to=utc(2026, 2, 1, 9))
    )
    assert [e.name for e in result] == ["Edge"]


@pytest.mark.asyncio
async def test_filter_max_fee_zero(events, make_event):
    """max_fee=0 over fees {0, 10, 100} returns only the free event."""
    await make_event(name="Free", fee=0)
    await make_event(name="Cheap", fee=10)
    await make_event(name="Pricey", fee=100)

    result = await events.find_all_with_filters(EventFilter(max_fee=0))
    assert [e.name for e in result] == ["Free"]


@pytest.mark.asyncio
async def test_filter_fee_range(events, make_event):
    await make_event(name="Free", fee=0)
    await make_event(name="Cheap", fee=10)
    await make_event(name="Pricey", fee=100)

    result = await events.find_all_with_filters(EventFilter(min_fee=10, max_fee=100))
    assert sorted(e.name for e in result) == ["Cheap", "Pricey"]


@pytest.mark.asyncio
async def test_filter_tags_any_match_without_duplicates(events, make_event):
    """Tag matching is OR, and an event matching twice appears once."""
    await make_event(name="Concert", date=utc(2026, 1, 1), tags=["Music"])
    await make_event(name="Hackathon", date=utc(2026, 1, 2), tags=["Tech"])
    await make_event(name="Synth Lab", date=utc(2026, 1, 3), tags=["Music", "Tech"])

    music = await events.find_all_with_filters(EventFilter(tags=("Music",)))
    assert [e.name for e in music] == ["Concert", "Synth Lab"]

    either = await events.find_all_with_filters(EventFilter(tags=("Music", "Tech")))
    assert [e.name for e in either] == ["Concert", "Hackathon", "Synth Lab"]


@pytest.mark.asyncio
async def test_filter_predicates_combine(events, make_event):
    await make_event(name="Old Concert", date=utc(2026, 1, 1), fee=5, tags=["Music"])
    await make_event(name="Paid Concert", date=utc(2026, 3, 1), fee=50, tags=["Music"])
    await make_event(name="Free Concert", date=utc(2026, 3, 2), fee=0, tags=["Music"])
    await make_event(name="Free Talk", date=utc(2026, 3, 3), fee=0, tags=["Tech"])

    result = await events.find_all_with_filters(
        EventFilter(date_from=utc(2026, 2, 1), max_fee=10, tags=("Music",))
    )
    assert [e.name for e in result] == ["Free Concert"]


@pytest.mark.asyncio
async def test_filter_pagination(events, make_event):
    for day in range(1, 6):
        await make_event(name=f"Day {day}", date=utc(2026, 4, day))

    page_two = await events.find_all_with_filters(EventFilter(pagination=Pagination(page=2, page_size=2)))
    assert [e.name for e in page_two] == ["Day 3", "Day 4"]

    last = await events.find_all_with_filters(EventFilter(pagination=Pagination(page=3, page_size=2)))
    assert [e.name for e in last] == ["Day 5"]


@pytest.mark.asyncio
async def test_find_all_by_tags_empty_list(events, make_event):
    await make_event(tags=["Music"])
    assert await events.find_all_by_tags([]) == []


@pytest.mark.asyncio
async def test_find_by_organizer(events, make_event, host, other_host):
    await make_event(name="Mine", date=utc(2026, 1, 2))
    await make_event(name="Theirs", organizer=other_host)
    await make_event(name="Also Mine", date=utc(2026, 1, 1))

    assert [e.name for e in await events.find_by_organizer(host.id)] == ["Also Mine", "Mine"]


@pytest.mark.asyncio
async def test_delete_cascades_tags_and_attendance(events, db_session, make_event, attendee):
    event = await make_event(tags=["Music", "Party"])
    event_id = event.id
    await events.register_attendance(attendee.id, event_id)
    assert await _count(db_session, event_tags, event_id) == 2
    assert await _count(db_session, attendance, event_id) == 1

    await events.delete(event_id)

    assert await _count(db_session, event_tags, event_id) == 0
    assert await _count(db_session, attendance, event_id) == 0
    assert event_id not in {e.id for e in await events.find_all()}
    assert await events.get_attendees(event_id) == []
    with pytest.raises(EventNotFound):
        await events.find_by_id(event_id)


@pytest.mark.asyncio
async def test_delete_missing_event(events):
    with pytest.raises(EventNotFound):
        await events.delete(uuid.uuid4())


@pytest.mark.asyncio
async def test_service_lookups(event_service, make_event):
    concert = await make_event(name="Concert", date=utc(2026, 1, 1), tags=["Music"])
    await make_event(name="Hackathon", date=utc(2026, 1, 2), tags=["Tech"])

    assert (await event_service.get_event(concert.id)).name == "Concert"
    assert [e.name for e in await event_service.get_all_events()] == ["Concert", "Hackathon"]
    assert [e.name for e in await event_service.get_events_by_tags(["Music"])] == ["Concert"]
    assert await event_service.get_events_by_tags([]) == []


def test_filter_has_predicates():
    assert not EventFilter().has_predicates
    assert not EventFilter(pagination=Pagination(page=2)).has_predicates
    assert EventFilter(min_fee=0).has_predicates
    assert EventFilter(tags=("Music",)).has_predicates
