"""Login, session status and logout routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse

from stream11.api.dependencies import (
    AuthServiceDep,
    SessionDep,
    SessionTokensDep,
    SettingsDep,
    get_session_cookie,
)
from stream11.api.schemas import AuthStatusResponse, LoginUrlResponse, LogoutResponse
from stream11.config.settings import Settings
from stream11.models.user import UserResponse
from stream11.services.errors import UnauthenticatedError

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    session = settings.session
    response.set_cookie(
        key=session.cookie_name,
        value=token,
        max_age=session.max_age_seconds,
        httponly=True,
        secure=session.cookie_secure,
        samesite=session.cookie_samesite,
        path="/",
    )


@router.get("/login-url", response_model=LoginUrlResponse)
async def login_url(auth: AuthServiceDep) -> LoginUrlResponse:
    """Twitch consent URL the front-end sends the browser to."""
    return LoginUrlResponse(url=auth.login_url())


@router.get("/callback")
async def oauth_callback(
    auth: AuthServiceDep,
    settings: SettingsDep,
    code: str | None = None,
) -> RedirectResponse:
    """Finish the Twitch login, set the session cookie and go to the dashboard."""
    result = await auth.complete_login(code)

    response = RedirectResponse(
        url=f"{settings.app.frontend_url.rstrip('/')}/dashboard",
        status_code=302,
    )
    set_session_cookie(response, settings, result.session_token)
    return response


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(
    tokens: SessionTokensDep,
    token: Annotated[str | None, Depends(get_session_cookie)],
) -> AuthStatusResponse:
    """Whether the request carries a valid session token."""
    if not token:
        return AuthStatusResponse(authenticated=False)
    try:
        tokens.verify(token)
    except UnauthenticatedError:
        return AuthStatusResponse(authenticated=False)
    return AuthStatusResponse(authenticated=True)


@router.get("/me", response_model=UserResponse)
async def current_user(context: SessionDep) -> UserResponse:
    """Profile and points balance of the signed-in viewer."""
    return UserResponse.from_user(context.user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response, settings: SettingsDep) -> LogoutResponse:
    """Clear the session cookie."""
    session = settings.session
    response.delete_cookie(
        key=session.cookie_name,
        path="/",
        httponly=True,
        secure=session.cookie_secure,
        samesite=session.cookie_samesite,
    )
    return LogoutResponse()
