"""
Pydantic schemas for event-related request/response validation.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import AwareDatetime, BaseModel, Field, field_validator

from convenly.db.base import as_utc


class EventCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    date: AwareDatetime
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    fee: float = Field(0.0, ge=0)
    tags: list[str] = Field(default_factory=list, max_length=20)


class EventResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    date: datetime
    latitude: float
    longitude: float
    fee: float
    organizer_id: uuid.UUID
    tags: list[str]

    model_config = {"from_attributes": True}

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_names(cls, value):
        return [getattr(tag, "name", tag) for tag in value]

    @field_validator("date")
    @classmethod
    def _utc_date(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventDetailResponse(EventResponse):
    attendees_count: int
    user_registered: bool


class EventListResponse(BaseModel):
    events: list[EventResponse]
    page: Optional[int] = None
    page_size: Optional[int] = None
    cached: bool = False


class MyEventsResponse(BaseModel):
    hosting: list[EventResponse]
    attending: list[EventResponse]
