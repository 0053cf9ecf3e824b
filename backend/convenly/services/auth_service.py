"""
Authentication and authorization pipeline.

`authenticate` turns a session token into an AuthContext or rejects the request;
`authorize` then checks the context's role. Authorization depends on the role that
authentication attached, so it always runs second. Neither stage writes anything.
"""

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from convenly.core.exceptions import Forbidden, SessionNotFound, Unauthorized
from convenly.core.metrics import record_acl_decision
from convenly.domain.identity import Role
from convenly.repositories.sessions import SessionRepository


@dataclass(frozen=True)
class AuthContext:
    user_id: uuid.UUID
    role: Role
    session_token: str


async def authenticate(
    sessions: SessionRepository,
    token: Optional[str],
    logger: structlog.stdlib.BoundLogger,
) -> AuthContext:
    if not token:
        logger.warning("authentication_failed", reason="missing_session")
        raise Unauthorized()

    try:
        user = await sessions.resolve(token)
    except SessionNotFound:
        logger.warning("authentication_failed", reason="unknown_session")
        raise Unauthorized() from None

    context = AuthContext(user_id=user.id, role=user.user_role, session_token=token)
    logger.info("authenticated", user_id=str(context.user_id), role=context.role.name)
    return context


def authorize(
    context: AuthContext,
    required_roles: Iterable[Role],
    logger: structlog.stdlib.BoundLogger,
) -> AuthContext:
    required = frozenset(required_roles)
    if context.role not in required:
        record_acl_decision(allowed=False)
        logger.warning(
            "acl_check_failed",
            user_id=str(context.user_id),
            role=context.role.name,
            required_roles=sorted(role.name for role in required),
        )
        raise Forbidden()

    record_acl_decision(allowed=True)
    logger.info("acl_check_passed", user_id=str(context.user_id), role=context.role.name)
    return context
