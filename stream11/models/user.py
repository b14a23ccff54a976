"""
User model for the predictions backend.

A user is a Twitch viewer who completed the OAuth login at least once.
The stable identity is the Twitch user id; everything else is refreshed
from the Twitch profile on each login.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from stream11.models.base import TimestampedModel
from stream11.validators.custom_types import UtcDatetime


class TwitchProfile(BaseModel):
    """
    Viewer profile as returned by the Twitch Helix ``/users`` endpoint.

    Only the fields the backend stores are declared; the rest of the
    payload is ignored.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: Annotated[str, Field(min_length=1, description="Twitch user id")]
    login: Annotated[str, Field(min_length=1, description="Twitch login name")]
    display_name: str | None = None
    email: EmailStr | None = None
    profile_image_url: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_to_none(cls, v: str | None) -> str | None:
        """Twitch sends an empty string when the email scope is missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class User(TimestampedModel):
    """
    User document model.

    Indexes:
        - twitch_id: unique
        - total_points: for the points leaderboard
    """

    twitch_id: Annotated[
        str,
        Field(min_length=1, description="Stable Twitch user id"),
    ]
    username: Annotated[
        str,
        Field(min_length=1, description="Twitch login name"),
    ]
    display_name: Annotated[
        str | None,
        Field(default=None, description="Display name shown on Twitch"),
    ] = None
    email: Annotated[
        EmailStr | None,
        Field(default=None, description="Verified Twitch email, if shared"),
    ] = None
    profile_image_url: str | None = None
    access_token: Annotated[
        str | None,
        Field(default=None, description="Last Twitch access token (never exposed)"),
    ] = None
    total_points: Annotated[
        int,
        Field(default=0, description="Current points balance"),
    ] = 0
    last_login: Annotated[
        UtcDatetime | None,
        Field(default=None, description="Last successful OAuth login"),
    ] = None

    @property
    def effective_display_name(self) -> str:
        """Get display name, falling back to the login name if not set."""
        return self.display_name or self.username


class UserResponse(BaseModel):
    """
    User data for API responses.

    Excludes the provider access token.
    """

    id: str = Field(description="User ID")
    twitch_id: str
    username: str
    display_name: str | None = None
    email: str | None = None
    profile_image_url: str | None = None
    total_points: int = 0
    created_at: datetime
    last_login: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Create response from User model."""
        return cls(
            id=str(user.id),
            twitch_id=user.twitch_id,
            username=user.username,
            display_name=user.effective_display_name,
            email=user.email,
            profile_image_url=user.profile_image_url,
            total_points=user.total_points,
            created_at=user.created_at,
            last_login=user.last_login,
        )
