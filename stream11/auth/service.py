"""
Login orchestration.

Ties the Twitch OAuth client, the user store and session tokens together:
a callback code becomes a stored user plus a signed session token, and a
session token becomes the user it was issued to.
"""

from dataclasses import dataclass

import structlog

from stream11.auth.tokens import SessionIdentity, SessionTokens
from stream11.auth.twitch import TwitchOAuthClient
from stream11.models.user import User
from stream11.services.errors import InvalidRequestError, UserNotFoundError
from stream11.services.user_service import UserService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a completed OAuth login."""

    user: User
    session_token: str


@dataclass(frozen=True)
class RequestContext:
    """The authenticated viewer of a request."""

    identity: SessionIdentity
    user: User


class AuthService:
    """Service layer for login and session resolution."""

    def __init__(
        self,
        tokens: SessionTokens,
        twitch: TwitchOAuthClient,
        user_service: UserService,
    ) -> None:
        self.tokens = tokens
        self.twitch = twitch
        self.user_service = user_service

    def login_url(self, state: str | None = None) -> str:
        """Twitch consent URL to start a login."""
        return self.twitch.authorization_url(state)

    async def complete_login(self, code: str | None) -> LoginResult:
        """
        Finish the OAuth flow for a callback code.

        Exchanges the code, fetches the profile, upserts the user and mints
        a session token for them.

        Args:
            code: The ``code`` query parameter of the callback

        Returns:
            The stored user and their new session token

        Raises:
            InvalidRequestError: If no code was supplied
            OAuthExchangeFailedError: If Twitch rejects the code
            OAuthProfileFetchFailedError: If the profile cannot be fetched
            UpstreamUnavailableError: If Twitch cannot be reached
        """
        if not code:
            raise InvalidRequestError("Missing authorization code")

        access_token = await self.twitch.exchange_code(code)
        profile = await self.twitch.fetch_profile(access_token)
        user = await self.user_service.upsert_profile(profile, access_token=access_token)

        return LoginResult(
            user=user,
            session_token=self.tokens.mint(user.twitch_id, user.username),
        )


async def resolve_session(
    tokens: SessionTokens,
    user_service: UserService,
    token: str,
) -> RequestContext:
    """
    Resolve a session token to its viewer.

    Raises:
        ExpiredCredentialError: If the token expired
        InvalidCredentialError: If the token cannot be verified
        UserNotFoundError: If the token's user no longer exists
    """
    identity = tokens.verify(token)
    user = await user_service.find_by_twitch_id(identity.twitch_id)
    if user is None:
        logger.warning("Session for unknown user", twitch_id=identity.twitch_id)
        raise UserNotFoundError("User not found")
    return RequestContext(identity=identity, user=user)
