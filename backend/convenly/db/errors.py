"""
Classification of IntegrityError across PostgreSQL (asyncpg) and SQLite.

PostgreSQL reports an SQLSTATE and the constraint name; SQLite only gives a message,
so both are checked.
"""

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def _message(exc: IntegrityError) -> str:
    return str(exc.orig)


def is_unique_violation(exc: IntegrityError) -> bool:
    code = _sqlstate(exc)
    if code is not None:
        return code == UNIQUE_VIOLATION
    return "UNIQUE CONSTRAINT" in _message(exc).upper()


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    code = _sqlstate(exc)
    if code is not None:
        return code == FOREIGN_KEY_VIOLATION
    return "FOREIGN KEY CONSTRAINT" in _message(exc).upper()


def is_check_violation(exc: IntegrityError) -> bool:
    code = _sqlstate(exc)
    if code is not None:
        return code == CHECK_VIOLATION
    return "CHECK CONSTRAINT" in _message(exc).upper()


def mentions(exc: IntegrityError, *names: str) -> bool:
    """True if the violation names any of the given constraints or columns."""
    constraint = getattr(getattr(exc.orig, "__cause__", None), "constraint_name", None)
    if constraint in names:
        return True
    message = _message(exc)
    return any(name in message for name in names)
