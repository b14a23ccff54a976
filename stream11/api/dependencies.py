"""
FastAPI dependencies.

Shared resources (settings, the database handle, the outbound HTTP client)
live on ``app.state`` and are handed to services here. Tests replace them
through ``app.dependency_overrides``.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Annotated

import httpx
from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from stream11.auth import AuthService, RequestContext, SessionTokens, TwitchOAuthClient
from stream11.auth.service import resolve_session
from stream11.config.settings import Settings
from stream11.models.base import utc_now
from stream11.services import PredictionService, StatusService, UserService
from stream11.services.errors import UnauthenticatedError, UpstreamUnavailableError


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> AsyncIOMotorDatabase:
    connection = getattr(request.app.state, "db", None)
    if connection is None or not connection.is_connected:
        raise UpstreamUnavailableError("Database is not connected")
    return connection.database


def get_http_client(request: Request) -> httpx.AsyncClient:
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        raise UpstreamUnavailableError("HTTP client is not available")
    return client


def get_clock() -> Callable[[], datetime]:
    return utc_now


SettingsDep = Annotated[Settings, Depends(get_settings)]
DatabaseDep = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
ClockDep = Annotated[Callable[[], datetime], Depends(get_clock)]


def get_user_service(database: DatabaseDep, settings: SettingsDep) -> UserService:
    return UserService(database, starting_points=settings.points.starting_balance)


def get_prediction_service(
    database: DatabaseDep,
    settings: SettingsDep,
    clock: ClockDep,
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> PredictionService:
    return PredictionService(
        database,
        stake_per_vote=settings.points.stake_per_vote,
        max_duration_minutes=settings.points.max_duration_minutes,
        user_service=user_service,
        clock=clock,
    )


def get_status_service(database: DatabaseDep, clock: ClockDep) -> StatusService:
    return StatusService(database, clock=clock)


def get_session_tokens(settings: SettingsDep) -> SessionTokens:
    return SessionTokens(
        settings.session.signing_key,
        algorithm=settings.session.algorithm,
        max_age_days=settings.session.max_age_days,
    )


def get_twitch_client(
    settings: SettingsDep,
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> TwitchOAuthClient:
    return TwitchOAuthClient(settings.twitch, settings.app.oauth_redirect_uri, http_client)


def get_auth_service(
    tokens: Annotated[SessionTokens, Depends(get_session_tokens)],
    twitch: Annotated[TwitchOAuthClient, Depends(get_twitch_client)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> AuthService:
    return AuthService(tokens, twitch, user_service)


def get_session_cookie(request: Request, settings: SettingsDep) -> str | None:
    return request.cookies.get(settings.session.cookie_name)


async def require_session(
    request: Request,
    token: Annotated[str | None, Depends(get_session_cookie)],
    tokens: Annotated[SessionTokens, Depends(get_session_tokens)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> RequestContext:
    """
    Resolve the session cookie to the calling viewer.

    The resulting context is also stored on ``request.state.context``.

    Raises:
        UnauthenticatedError: If there is no cookie or it does not verify
        UserNotFoundError: If the token's user no longer exists
    """
    if not token:
        raise UnauthenticatedError("No session token")

    context = await resolve_session(tokens, user_service, token)
    request.state.context = context
    return context


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
PredictionServiceDep = Annotated[PredictionService, Depends(get_prediction_service)]
StatusServiceDep = Annotated[StatusService, Depends(get_status_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SessionTokensDep = Annotated[SessionTokens, Depends(get_session_tokens)]
SessionDep = Annotated[RequestContext, Depends(require_session)]
