"""
User service with business logic for user management.

Provides high-level operations for creating users from their Twitch
profile, looking them up, and moving points in and out of their balance.
"""

from datetime import datetime

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from stream11.models.user import TwitchProfile, User
from stream11.repositories.user_repository import UserRepository
from stream11.services.errors import UserNotFoundError

logger = structlog.get_logger(__name__)


class UserService:
    """
    Service layer for user operations.

    Handles business logic and orchestration of user-related operations.
    Uses UserRepository for database access.

    Usage:
        user_service = UserService(connection.database)
        user = await user_service.upsert_profile(profile, access_token=token)
    """

    def __init__(self, database: AsyncIOMotorDatabase, starting_points: int = 1000) -> None:
        """
        Initialize user service.

        Args:
            database: Motor database instance
            starting_points: Balance given to a viewer on first login
        """
        self.db = database
        self.repository = UserRepository(database)
        self.starting_points = starting_points

    async def upsert_profile(
        self,
        profile: TwitchProfile,
        *,
        access_token: str | None = None,
        now: datetime | None = None,
    ) -> User:
        """
        Create a user on first login or refresh their profile afterwards.

        Exactly one user exists per Twitch id; a returning user keeps their
        points balance.

        Args:
            profile: Profile returned by Twitch
            access_token: Twitch access token of this login
            now: Login timestamp

        Returns:
            The stored user
        """
        user = await self.repository.upsert_profile(
            profile,
            access_token=access_token,
            starting_points=self.starting_points,
            now=now,
        )
        logger.info(
            "User logged in",
            twitch_id=user.twitch_id,
            username=user.username,
            total_points=user.total_points,
        )
        return user

    async def find_by_twitch_id(self, twitch_id: str) -> User | None:
        """Get user by Twitch id, or None."""
        return await self.repository.find_by_twitch_id(twitch_id)

    async def get_by_twitch_id(self, twitch_id: str) -> User:
        """
        Get user by Twitch id.

        Raises:
            UserNotFoundError: If no such user exists
        """
        user = await self.repository.find_by_twitch_id(twitch_id)
        if user is None:
            raise UserNotFoundError(f"User not found: {twitch_id}")
        return user

    async def adjust_points(self, twitch_id: str, delta: int) -> User:
        """
        Add ``delta`` points to a user's balance atomically.

        Args:
            twitch_id: Stable Twitch user id
            delta: Points to add (negative to deduct)

        Returns:
            Updated user

        Raises:
            UserNotFoundError: If no such user exists
        """
        user = await self.repository.adjust_points(twitch_id, delta)
        if user is None:
            raise UserNotFoundError(f"User not found: {twitch_id}")

        logger.debug(
            "Adjusted points",
            twitch_id=twitch_id,
            delta=delta,
            total_points=user.total_points,
        )
        return user

    async def top_users(self, limit: int = 10) -> list[User]:
        """Get the points leaderboard."""
        return await self.repository.get_top_users_by_points(limit=limit)
