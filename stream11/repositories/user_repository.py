"""
User repository for database operations.

Provides async CRUD operations and queries for User documents.
"""

from datetime import datetime

from pymongo.errors import DuplicateKeyError

from stream11.models.base import utc_now
from stream11.models.user import TwitchProfile, User
from stream11.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """
    Repository for User document operations.

    Users are addressed by their Twitch id rather than by ObjectId.
    """

    collection_name = "users"
    model_class = User

    async def find_by_twitch_id(self, twitch_id: str) -> User | None:
        """
        Find user by Twitch id.

        Args:
            twitch_id: Stable Twitch user id

        Returns:
            User if found, None otherwise
        """
        return await self.find_one({"twitch_id": twitch_id})

    async def upsert_profile(
        self,
        profile: TwitchProfile,
        *,
        access_token: str | None,
        starting_points: int,
        now: datetime | None = None,
    ) -> User:
        """
        Create or refresh a user from their Twitch profile.

        Profile fields and the login timestamp are overwritten; the points
        balance and creation time are only written when the document is
        inserted, so repeated logins never reset them.

        Args:
            profile: Profile returned by Twitch
            access_token: Twitch access token of this login
            starting_points: Balance of a newly created user
            now: Login timestamp

        Returns:
            The stored user
        """
        now = now or utc_now()
        update = {
            "$set": {
                "username": profile.login,
                "display_name": profile.display_name,
                "email": profile.email,
                "profile_image_url": profile.profile_image_url,
                "access_token": access_token,
                "last_login": now,
            },
            "$setOnInsert": {
                "total_points": starting_points,
                "created_at": now,
            },
        }

        try:
            user = await self.find_one_and_update(
                {"twitch_id": profile.id}, update, upsert=True, now=now
            )
        except DuplicateKeyError:
            # Two first logins raced on the unique index; the loser now matches
            user = await self.find_one_and_update(
                {"twitch_id": profile.id}, update, upsert=True, now=now
            )

        if user is None:
            raise RuntimeError(f"Upsert of Twitch user {profile.id} returned no document")
        return user

    async def adjust_points(self, twitch_id: str, delta: int) -> User | None:
        """
        Atomically add ``delta`` (possibly negative) to a user's balance.

        Args:
            twitch_id: Stable Twitch user id
            delta: Points to add

        Returns:
            Updated User if found, None otherwise
        """
        return await self.find_one_and_update(
            {"twitch_id": twitch_id},
            {"$inc": {"total_points": delta}},
        )

    async def get_top_users_by_points(self, limit: int = 10) -> list[User]:
        """
        Get users with the most points.

        Args:
            limit: Maximum number of users to return

        Returns:
            List of users sorted by total_points descending
        """
        return await self.find_many(
            skip=0,
            limit=limit,
            sort=[("total_points", -1), ("username", 1)],
        )
