"""
Signed session tokens.

A session token is an HS256 JWT carrying the viewer's Twitch id and login
plus issued-at and expiry claims. Expiry is checked against an injectable
``now`` so the validity window can be tested without waiting.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from pydantic import BaseModel, Field, ValidationError

from stream11.models.base import utc_now
from stream11.services.errors import ExpiredCredentialError, InvalidCredentialError


class SessionIdentity(BaseModel):
    """Identity recovered from a valid session token."""

    twitch_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    issued_at: datetime
    expires_at: datetime


class SessionTokens:
    """
    Mints and verifies session tokens.

    Usage:
        tokens = SessionTokens(settings.session.signing_key)
        token = tokens.mint(user.twitch_id, user.username)
        identity = tokens.verify(token)
    """

    def __init__(self, secret: str, algorithm: str = "HS256", max_age_days: int = 14) -> None:
        if not secret:
            raise ValueError("Session signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.max_age = timedelta(days=max_age_days)

    def mint(self, twitch_id: str, username: str, now: datetime | None = None) -> str:
        """
        Create a token for a viewer.

        Args:
            twitch_id: Stable Twitch user id
            username: Twitch login name
            now: Issue time (defaults to the current time)

        Returns:
            Encoded JWT, valid until ``now + max_age``
        """
        now = now or utc_now()
        claims = {
            "sub": twitch_id,
            "twitch_id": twitch_id,
            "username": username,
            "iat": int(now.timestamp()),
            "exp": int((now + self.max_age).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> SessionIdentity:
        """
        Check a token's signature and expiry.

        Args:
            token: Encoded JWT
            now: Verification time (defaults to the current time)

        Returns:
            The identity the token was minted for

        Raises:
            InvalidCredentialError: If the token is malformed, tampered with,
                signed with another key or lacks required claims
            ExpiredCredentialError: If the validity window has passed
        """
        if not token:
            raise InvalidCredentialError("Empty session token")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError as e:
            raise InvalidCredentialError("Session token could not be verified") from e

        try:
            issued_at = datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
            identity = SessionIdentity(
                twitch_id=claims["twitch_id"],
                username=claims["username"],
                issued_at=issued_at,
                expires_at=expires_at,
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise InvalidCredentialError("Session token is missing claims") from e

        now = now or utc_now()
        if now >= identity.expires_at:
            raise ExpiredCredentialError("Session token has expired")
        return identity
