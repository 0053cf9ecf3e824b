"""
Tests for the event listing cache and the operational endpoints.
"""

import fnmatch
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from convenly.domain.filters import EventFilter, Pagination
from convenly.main import app
from convenly.services.cache_service import EVENT_LIST_PREFIX, EventListCache, make_event_list_key


class InMemoryRedis:
    """The slice of the redis.asyncio client the listing cache uses."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def delete(self, key):
        self.store.pop(key, None)

    async def scan_iter(self, match="*", count=None):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key

    async def info(self, section=None):
        return {"keyspace_hits": 3, "keyspace_misses": 1}


class CommitAwareRedis(InMemoryRedis):
    """Records whether the request transaction was still open when listings were dropped."""

    def __init__(self, session):
        super().__init__()
        self.session = session
        self.scans_inside_transaction = []

    async def scan_iter(self, match="*", count=None):
        self.scans_inside_transaction.append(self.session.in_transaction())
        async for key in super().scan_iter(match, count):
            yield key


class UnreachableRedis(InMemoryRedis):
    async def get(self, key):
        raise RedisConnectionError("connection refused")


@pytest.fixture
def event_cache(logger):
    cache = EventListCache(InMemoryRedis(), ttl=60, logger=logger)
    app.state.event_cache = cache
    yield cache
    app.state.event_cache = None


def test_cache_key_ignores_tag_order():
    first = EventFilter(tags=("Tech", "Music"), max_fee=0)
    second = EventFilter(tags=("Music", "Tech", "Music"), max_fee=0)
    assert make_event_list_key(first) == make_event_list_key(second)
    assert make_event_list_key(first).startswith(EVENT_LIST_PREFIX)


def test_cache_key_distinguishes_pages_and_bounds():
    base = EventFilter(date_from=datetime(2026, 2, 1, tzinfo=timezone.utc))
    paged = EventFilter(date_from=base.date_from, pagination=Pagination(page=2, page_size=10))
    assert make_event_list_key(base) != make_event_list_key(paged)
    assert make_event_list_key(EventFilter(min_fee=0)) != make_event_list_key(EventFilter())


@pytest.mark.asyncio
async def test_listing_served_from_cache_until_invalidated(
    client: AsyncClient, event_cache, make_event, host_headers
):
    await make_event(name="First")

    miss = await client.get("/api/v1/events/")
    hit = await client.get("/api/v1/events/")
    assert miss.json()["cached"] is False
    assert hit.json()["cached"] is True
    assert hit.json()["events"] == miss.json()["events"]

    created = await client.post(
        "/api/v1/events/",
        json={
            "name": "Second",
            "date": "2027-01-01T10:00:00Z",
            "latitude": 0,
            "longitude": 0,
        },
        headers=host_headers,
    )
    assert created.status_code == 201
    assert event_cache.client.store == {}

    fresh = await client.get("/api/v1/events/")
    assert fresh.json()["cached"] is False
    assert [e["name"] for e in fresh.json()["events"]] == ["First", "Second"]


@pytest.mark.asyncio
async def test_listings_invalidated_only_after_commit(
    client: AsyncClient, db_session, logger, make_event, host_headers
):
    """Listings are dropped only after the delete commits."""
    redis_client = CommitAwareRedis(db_session)
    app.state.event_cache = EventListCache(redis_client, ttl=60, logger=logger)
    try:
        first = await make_event(name="First")
        await client.get("/api/v1/events/")
        assert redis_client.store

        deleted = await client.delete(f"/api/v1/events/{first.id}", headers=host_headers)
        assert deleted.status_code == 200
    finally:
        app.state.event_cache = None

    assert redis_client.scans_inside_transaction == [False]
    assert redis_client.store == {}


@pytest.mark.asyncio
async def test_failed_commit_keeps_cache(logger):
    class FailingSession:
        async def commit(self):
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

    cache = EventListCache(InMemoryRedis(), ttl=60, logger=logger)
    await cache.set(EventFilter(), {"events": []})

    with pytest.raises(OperationalError):
        await cache.invalidate_after_commit(FailingSession())
    assert cache.client.store


@pytest.mark.asyncio
async def test_cache_errors_fall_through(logger):
    cache = EventListCache(UnreachableRedis(), ttl=60, logger=logger)
    assert await cache.get(EventFilter()) is None


@pytest.mark.asyncio
async def test_health_reports_cache(client: AsyncClient, event_cache):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"]["hit_rate"] == 75.0


@pytest.mark.asyncio
async def test_health_without_cache(client: AsyncClient):
    response = await client.get("/health")
    assert response.json()["cache"] == {"status": "disabled"}
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient):
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "convenly_login_attempts_total" in response.text
