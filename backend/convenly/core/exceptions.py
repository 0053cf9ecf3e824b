"""
Domain error taxonomy.

Every error carries the HTTP status it maps to, so the API layer can render any of
them with a single exception handler. Categories are the base classes; callers that
only care about the category catch those.
"""

from typing import Iterable


class ConvenlyError(Exception):
    """Base exception for all Convenly errors."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


# --- Validation (400) ---

class ValidationError(ConvenlyError):
    status_code = 400
    default_detail = "Invalid input"


class InvalidEmailFormat(ValidationError):
    default_detail = "Email is in invalid format"


class PasswordTooShort(ValidationError):
    default_detail = "Password is too short"


class PasswordTooLong(ValidationError):
    default_detail = "Password is too long"


class PasswordTooWeak(ValidationError):
    default_detail = (
        "Password should contain at least one uppercase letter, one lowercase letter, "
        "one digit, and one special character"
    )


class NameTooShort(ValidationError):
    default_detail = "Name is too short"


class InvalidFilter(ValidationError):
    default_detail = "Invalid event filter"


# --- Not found (404) ---

class NotFoundError(ConvenlyError):
    status_code = 404
    default_detail = "Resource not found"


class UserNotFound(NotFoundError):
    default_detail = "User not found"


class EventNotFound(NotFoundError):
    default_detail = "Event not found"


class SessionNotFound(NotFoundError):
    default_detail = "Session not found"


class OrganizerNotFound(NotFoundError):
    default_detail = "Organizer does not exist"


class UnknownTag(NotFoundError):
    default_detail = "Unknown tag"

    def __init__(self, names: Iterable[str]):
        self.names = sorted(names)
        super().__init__(f"Unknown tag(s): {', '.join(self.names)}")


class ForeignKeyViolation(NotFoundError):
    default_detail = "Referenced user or event does not exist"


# --- Conflict (409) ---

class ConflictError(ConvenlyError):
    status_code = 409
    default_detail = "Conflict"


class EmailAlreadyExists(ConflictError):
    default_detail = "Email already registered"


class DuplicateRegistration(ConflictError):
    default_detail = "Already registered for this event"


# --- Authentication (401) ---

class AuthenticationError(ConvenlyError):
    status_code = 401
    default_detail = "Unauthorized"


class Unauthorized(AuthenticationError):
    pass


class InvalidCredentials(AuthenticationError):
    default_detail = "Invalid email or password"


# --- Authorization (403) ---

class AuthorizationError(ConvenlyError):
    status_code = 403
    default_detail = "Forbidden"


class Forbidden(AuthorizationError):
    pass


class NotEventOrganizer(AuthorizationError):
    default_detail = "You can only delete your own events"


# --- Infrastructure ---

class StoreError(ConvenlyError):
    """Transient storage failure; the only category where a retry may help."""

    status_code = 503
    default_detail = "Storage unavailable"


class StoreTimeoutError(StoreError):
    status_code = 504
    default_detail = "Storage operation timed out"


class HashingError(StoreError):
    status_code = 500
    default_detail = "Failed to hash password"
