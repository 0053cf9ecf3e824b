from convenly.models.associations import attendance, event_tags
from convenly.models.event import Event
from convenly.models.session import UserSession
from convenly.models.tag import Tag
from convenly.models.user import User

__all__ = ["User", "UserSession", "Event", "Tag", "event_tags", "attendance"]
