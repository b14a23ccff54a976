"""Tests for the user store."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from stream11.services.errors import UserNotFoundError

LOGIN = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestUpsertProfile:
    """Tests for login upserts."""

    async def test_first_login_creates_user_with_starting_points(
        self, user_service, profile_factory
    ):
        profile = profile_factory.create(twitch_id="42", login="viewer")

        user = await user_service.upsert_profile(profile, access_token="tok", now=LOGIN)

        assert user.twitch_id == "42"
        assert user.username == "viewer"
        assert user.total_points == 1000
        assert user.access_token == "tok"
        assert user.created_at == LOGIN
        assert user.last_login == LOGIN

    async def test_upsert_is_idempotent(self, user_service, user_repository, profile_factory):
        profile = profile_factory.create(twitch_id="42")

        first = await user_service.upsert_profile(profile, now=LOGIN)
        second = await user_service.upsert_profile(profile, now=LOGIN + timedelta(hours=1))

        assert await user_repository.count({"twitch_id": "42"}) == 1
        assert second.id == first.id
        assert second.total_points == first.total_points == 1000
        assert second.created_at == LOGIN
        assert second.last_login == LOGIN + timedelta(hours=1)

    async def test_returning_user_keeps_points_and_gets_new_profile(
        self, user_service, profile_factory
    ):
        await user_service.upsert_profile(profile_factory.create(twitch_id="42", login="old_name"))
        await user_service.adjust_points("42", 250)

        user = await user_service.upsert_profile(
            profile_factory.create(twitch_id="42", login="new_name", display_name="NewName")
        )

        assert user.username == "new_name"
        assert user.display_name == "NewName"
        assert user.total_points == 1250

    async def test_concurrent_first_logins_create_one_user(
        self, user_service, user_repository, profile_factory
    ):
        profile = profile_factory.create(twitch_id="42")

        users = await asyncio.gather(*(user_service.upsert_profile(profile) for _ in range(5)))

        assert await user_repository.count({"twitch_id": "42"}) == 1
        assert {u.id for u in users} == {users[0].id}


class TestLookups:
    async def test_get_by_twitch_id(self, user_service, make_user):
        created = await make_user(twitch_id="7")

        assert (await user_service.get_by_twitch_id("7")).id == created.id
        assert await user_service.find_by_twitch_id("8") is None

    async def test_get_missing_user_raises(self, user_service):
        with pytest.raises(UserNotFoundError):
            await user_service.get_by_twitch_id("missing")

    async def test_top_users_sorted_by_points(self, user_service, make_user):
        await make_user(twitch_id="1", login="a")
        await make_user(twitch_id="2", login="b")
        await make_user(twitch_id="3", login="c")
        await user_service.adjust_points("2", 50)
        await user_service.adjust_points("3", -20)

        top = await user_service.top_users(limit=2)

        assert [u.twitch_id for u in top] == ["2", "1"]


class TestAdjustPoints:
    async def test_adds_and_subtracts(self, user_service, make_user):
        await make_user(twitch_id="9")

        assert (await user_service.adjust_points("9", 30)).total_points == 1030
        assert (await user_service.adjust_points("9", -50)).total_points == 980

    async def test_unknown_user(self, user_service):
        with pytest.raises(UserNotFoundError):
            await user_service.adjust_points("nobody", 10)
