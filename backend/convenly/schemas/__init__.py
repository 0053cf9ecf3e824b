from convenly.schemas.user import UserCreate, UserResponse, UserLogin, StatusResponse
from convenly.schemas.event import (
    EventCreate,
    EventResponse,
    EventDetailResponse,
    EventListResponse,
    MyEventsResponse,
)
from convenly.schemas.tag import TagResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "StatusResponse",
    "EventCreate", "EventResponse", "EventDetailResponse", "EventListResponse", "MyEventsResponse",
    "TagResponse",
]
