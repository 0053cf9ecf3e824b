"""
Authentication endpoints: register, login, logout and logout from every device.
"""

from fastapi import APIRouter, Depends, Response, status

from convenly.api.deps import get_app_settings, get_auth_context, get_user_service
from convenly.core.config import Settings
from convenly.schemas.user import StatusResponse, UserCreate, UserLogin, UserResponse
from convenly.services.auth_service import AuthContext
from convenly.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, user_service: UserService = Depends(get_user_service)):
    """Register a new attendee account."""
    return await user_service.register(user_data.name, user_data.email, user_data.password)


@router.post("/login", response_model=UserResponse)
async def login(
    login_data: UserLogin,
    response: Response,
    user_service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_app_settings),
):
    """Authenticate and receive the session cookie."""
    token = await user_service.login(login_data.email, login_data.password)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_TTL_SECONDS,
    )
    return await user_service.get_by_session(token)


@router.post("/logout", response_model=StatusResponse)
async def logout(
    response: Response,
    context: AuthContext = Depends(get_auth_context),
    user_service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_app_settings),
):
    """End the current session."""
    await user_service.logout(context.session_token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return StatusResponse()


@router.post("/logout-all", response_model=StatusResponse)
async def logout_all(
    response: Response,
    context: AuthContext = Depends(get_auth_context),
    user_service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_app_settings),
):
    """End every session of the caller, on all devices."""
    await user_service.logout_everywhere(context.user_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return StatusResponse()
