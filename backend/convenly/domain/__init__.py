from convenly.domain.identity import Email, Password, Role
from convenly.domain.filters import EventFilter, Pagination

__all__ = ["Email", "Password", "Role", "EventFilter", "Pagination"]
