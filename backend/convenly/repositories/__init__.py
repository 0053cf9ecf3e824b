from convenly.repositories.base import Repository
from convenly.repositories.events import EventRepository
from convenly.repositories.sessions import SessionRepository
from convenly.repositories.tags import DEFAULT_TAG_NAMES, TagRepository
from convenly.repositories.users import UserRepository

__all__ = [
    "Repository",
    "UserRepository",
    "SessionRepository",
    "TagRepository",
    "EventRepository",
    "DEFAULT_TAG_NAMES",
]
