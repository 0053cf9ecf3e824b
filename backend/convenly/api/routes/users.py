"""
Endpoints for the authenticated user's own account.
"""

from fastapi import APIRouter, Depends

from convenly.api.deps import get_auth_context, get_user_service
from convenly.schemas.user import UserResponse
from convenly.services.auth_service import AuthContext
from convenly.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def me(
    context: AuthContext = Depends(get_auth_context),
    user_service: UserService = Depends(get_user_service),
):
    return await user_service.get_by_id(context.user_id)


@router.post("/me/become-host", response_model=UserResponse)
async def become_host(
    context: AuthContext = Depends(get_auth_context),
    user_service: UserService = Depends(get_user_service),
):
    """Promote the caller to HOST. Promoting an existing host is a no-op."""
    return await user_service.promote_to_host(context.user_id)
