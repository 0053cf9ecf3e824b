"""
Identity value objects: validated email addresses, passwords and user roles.

Parsing is pure: no I/O, and every failure raises the specific validation error.
"""

import re
from dataclasses import dataclass, field
from enum import IntEnum

from email_validator import EmailNotValidError, validate_email

from convenly.core.exceptions import (
    InvalidEmailFormat,
    PasswordTooLong,
    PasswordTooShort,
    PasswordTooWeak,
)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 20
PASSWORD_SPECIAL_CHARACTERS = "!@#~$%^&*()+|_"

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile("[" + re.escape(PASSWORD_SPECIAL_CHARACTERS) + "]")


class Role(IntEnum):
    """User role; serialized on the wire as its integer value."""
    ATTENDEE = 0
    HOST = 1


@dataclass(frozen=True, eq=False)
class Email:
    """A syntactically valid mailbox, canonicalized to lower case."""

    value: str

    @classmethod
    def parse(cls, raw: str) -> "Email":
        candidate = (raw or "").strip()
        if not candidate:
            raise InvalidEmailFormat()
        try:
            validated = validate_email(candidate, check_deliverability=False)
        except EmailNotValidError as e:
            raise InvalidEmailFormat(f"Email is in invalid format: {e}") from e
        return cls(validated.normalized.lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Email):
            return NotImplemented
        return self.value.casefold() == other.value.casefold()

    def __hash__(self) -> int:
        return hash(self.value.casefold())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Password:
    """A plaintext password that satisfies the length and strength policy."""

    value: str = field(repr=False)

    @classmethod
    def parse(cls, raw: str) -> "Password":
        candidate = (raw or "").strip()
        validate_length(candidate)
        validate_strength(candidate)
        return cls(candidate)


def validate_length(raw: str) -> None:
    """Bounds apply to the UTF-8 encoded size, not the character count."""
    size = len(raw.encode("utf-8"))
    if size < MIN_PASSWORD_LENGTH:
        raise PasswordTooShort()
    if size > MAX_PASSWORD_LENGTH:
        raise PasswordTooLong()


def validate_strength(raw: str) -> None:
    checks = (_LOWER, _UPPER, _DIGIT, _SPECIAL)
    if not all(pattern.search(raw) for pattern in checks):
        raise PasswordTooWeak()
