"""
Tests for Pydantic models.

Tests validation, serialization, and business logic for the domain models.
"""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from stream11.models.prediction import (
    Ballot,
    Prediction,
    PredictionCreate,
    PredictionOption,
    PredictionStatus,
    compute_payouts,
)
from stream11.models.status_check import StatusCheck
from stream11.models.user import TwitchProfile, User, UserResponse
from stream11.validators.custom_types import PyObjectId, ensure_utc, parse_object_id

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

# =============================================================================
# PyObjectId Tests
# =============================================================================


class TestPyObjectId:
    """Tests for PyObjectId custom type."""

    def test_valid_objectid_string(self):
        """Test validation of valid ObjectId string."""
        valid_id = "507f1f77bcf86cd799439011"
        result = PyObjectId.validate(valid_id)
        assert isinstance(result, ObjectId)
        assert str(result) == valid_id

    def test_valid_objectid_instance(self):
        """Test that ObjectId instances pass through."""
        oid = ObjectId()
        result = PyObjectId.validate(oid)
        assert result == oid

    def test_invalid_objectid_string(self):
        """Test rejection of invalid ObjectId string."""
        with pytest.raises(Exception):
            PyObjectId.validate("invalid-id")

    def test_serialize(self):
        """Test ObjectId serialization to string."""
        oid = ObjectId()
        result = PyObjectId.serialize(oid)
        assert isinstance(result, str)
        assert result == str(oid)

    def test_parse_object_id_returns_none_for_garbage(self):
        assert parse_object_id("not-an-id") is None
        assert parse_object_id("507f1f77bcf86cd799439011") == ObjectId("507f1f77bcf86cd799439011")


def test_ensure_utc_attaches_timezone_to_naive_datetimes():
    naive = datetime(2024, 6, 1, 12, 0, 0)
    assert ensure_utc(naive) == NOW
    assert ensure_utc(naive).tzinfo is timezone.utc


# =============================================================================
# User Model Tests
# =============================================================================


class TestTwitchProfile:
    """Tests for the Twitch profile payload."""

    def test_blank_email_becomes_none(self):
        profile = TwitchProfile(id="1", login="viewer", email="")
        assert profile.email is None

    def test_unknown_fields_are_ignored(self):
        profile = TwitchProfile.model_validate(
            {"id": "1", "login": "viewer", "broadcaster_type": "partner", "view_count": 3}
        )
        assert profile.login == "viewer"

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            TwitchProfile.model_validate({"login": "viewer"})


class TestUser:
    """Tests for User model."""

    def test_effective_display_name_falls_back_to_username(self):
        user = User(twitch_id="1", username="viewer")
        assert user.effective_display_name == "viewer"

        user = User(twitch_id="1", username="viewer", display_name="Viewer")
        assert user.effective_display_name == "Viewer"

    def test_response_excludes_access_token(self):
        user = User(twitch_id="1", username="viewer", access_token="secret", total_points=1000)
        response = UserResponse.from_user(user).model_dump()

        assert "access_token" not in response
        assert response["id"] == str(user.id)
        assert response["total_points"] == 1000

    def test_to_mongo_uses_underscore_id(self):
        user = User(twitch_id="1", username="viewer")
        document = user.to_mongo()
        assert document["_id"] == user.id
        assert "id" not in document


# =============================================================================
# Prediction Model Tests
# =============================================================================


def _ballot(voter: str, choice: PredictionOption, minute: int = 0) -> Ballot:
    return Ballot(
        voter_id=voter,
        voter_username=f"user_{voter}",
        choice=choice,
        cast_at=NOW + timedelta(minutes=minute),
    )


class TestPredictionCreate:
    """Tests for PredictionCreate schema."""

    def test_valid_data(self):
        data = PredictionCreate(title="  Win?  ", option_a="Yes", option_b="No", duration_minutes=5)
        assert data.title == "Win?"
        assert data.game_type is None

    def test_options_must_differ(self):
        with pytest.raises(ValidationError, match="must be different"):
            PredictionCreate(title="Win?", option_a="Yes", option_b="yes", duration_minutes=5)

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            PredictionCreate(title="", option_a="Yes", option_b="No", duration_minutes=5)

    def test_duration_is_not_coerced(self):
        data = PredictionCreate(title="Win?", option_a="Yes", option_b="No", duration_minutes="5")
        assert data.duration_minutes == "5"


class TestPrediction:
    """Tests for Prediction model."""

    def _prediction(self, **overrides) -> Prediction:
        fields = {
            "creator_id": "100",
            "creator_username": "streamer",
            "title": "Win?",
            "option_a": "Yes",
            "option_b": "No",
            "ends_at": NOW + timedelta(minutes=10),
        }
        fields.update(overrides)
        return Prediction(**fields)

    def test_from_create_sets_window(self):
        data = PredictionCreate(title="Win?", option_a="Yes", option_b="No", duration_minutes=10)
        prediction = Prediction.from_create("100", "streamer", data, stake_per_vote=10, now=NOW)

        assert prediction.status == PredictionStatus.ACTIVE
        assert prediction.ends_at == NOW + timedelta(minutes=10)
        assert prediction.created_at == NOW
        assert prediction.total_votes == 0

    def test_tally_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="total_votes"):
            self._prediction(votes_a=2, votes_b=1, total_votes=4)

    def test_accepts_votes_until_ends_at(self):
        prediction = self._prediction()
        assert prediction.accepts_votes(NOW)
        assert not prediction.accepts_votes(NOW + timedelta(minutes=10))

        closed = self._prediction(status=PredictionStatus.CLOSED)
        assert not closed.accepts_votes(NOW)

    def test_can_resolve(self):
        assert self._prediction().can_resolve
        assert self._prediction(status=PredictionStatus.CLOSED).can_resolve
        assert not self._prediction(status=PredictionStatus.RESOLVED).can_resolve

    def test_percentages(self):
        prediction = self._prediction(votes_a=2, votes_b=1, total_votes=3)
        assert prediction.percent_a == 66.67
        assert prediction.percent_b == 33.33
        assert self._prediction().percent_a == 0.0

    def test_response_hides_voter_index_and_keeps_percentages(self):
        prediction = self._prediction(
            voter_ids=["1"],
            ballots=[_ballot("1", PredictionOption.OPTION_A)],
            votes_a=1,
            total_votes=1,
        )
        response = prediction.to_response()

        assert "voter_ids" not in response
        assert response["id"] == str(prediction.id)
        assert response["percent_a"] == 100.0

    def test_to_mongo_skips_computed_fields(self):
        document = self._prediction().to_mongo()
        assert "percent_a" not in document
        assert document["status"] == "active"

    def test_label_for(self):
        prediction = self._prediction()
        assert prediction.label_for(PredictionOption.OPTION_A) == "Yes"
        assert prediction.label_for("option_b") == "No"


class TestComputePayouts:
    """Tests for the payout split."""

    def test_losing_pool_split_between_winners(self):
        ballots = [
            _ballot("1", PredictionOption.OPTION_A, 0),
            _ballot("2", PredictionOption.OPTION_A, 1),
            _ballot("3", PredictionOption.OPTION_B, 2),
            _ballot("4", PredictionOption.OPTION_B, 3),
        ]
        payouts = compute_payouts(ballots, PredictionOption.OPTION_A, stake_per_vote=10)

        assert [(p.voter_id, p.points) for p in payouts] == [("1", 10), ("2", 10)]

    def test_remainder_goes_to_earliest_winner(self):
        ballots = [
            _ballot("1", PredictionOption.OPTION_B, 0),
            _ballot("2", PredictionOption.OPTION_A, 1),
            _ballot("3", PredictionOption.OPTION_A, 2),
            _ballot("4", PredictionOption.OPTION_A, 3),
        ]
        payouts = compute_payouts(ballots, PredictionOption.OPTION_A, stake_per_vote=10)

        assert [(p.voter_id, p.points) for p in payouts] == [("2", 4), ("3", 3), ("4", 3)]
        assert sum(p.points for p in payouts) == 10

    def test_no_winners(self):
        ballots = [_ballot("1", PredictionOption.OPTION_B)]
        assert compute_payouts(ballots, PredictionOption.OPTION_A, stake_per_vote=10) == []

    def test_no_losers_pays_zero(self):
        ballots = [_ballot("1", PredictionOption.OPTION_A)]
        payouts = compute_payouts(ballots, "option_a", stake_per_vote=10)
        assert [p.points for p in payouts] == [0]


def test_status_check_generates_id_and_timestamp():
    check = StatusCheck(client_name="x")
    assert check.id
    assert check.timestamp.tzinfo is not None
    assert StatusCheck(client_name="x").id != check.id
