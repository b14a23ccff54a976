"""
Prediction model for stream predictions.

A prediction is a two-outcome question opened by a viewer during a stream.
Other viewers cast one ballot each while it is active; the creator then
closes it and declares the winning option, which pays the losing side's
stakes out to the winning side.
"""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from stream11.models.base import EmbeddedModel, TimestampedModel, utc_now
from stream11.validators.custom_types import UtcDatetime


class PredictionStatus(StrEnum):
    """Lifecycle states of a prediction. Transitions only move forward."""

    ACTIVE = "active"  # Accepting votes until ends_at
    CLOSED = "closed"  # Voting stopped by the creator
    RESOLVED = "resolved"  # Winner declared and points paid out


class PredictionOption(StrEnum):
    """The two mutually exclusive outcomes of a prediction."""

    OPTION_A = "option_a"
    OPTION_B = "option_b"

    @classmethod
    def parse(cls, value: str) -> "PredictionOption | None":
        """Return the option for a raw value, or None if it is not one."""
        try:
            return cls(value)
        except ValueError:
            return None


OptionLabel = Annotated[str, Field(min_length=1, max_length=100)]


class Ballot(EmbeddedModel):
    """A single viewer's vote, embedded in its prediction."""

    voter_id: str = Field(..., description="Twitch id of the voter")
    voter_username: str = Field(..., description="Twitch login of the voter")
    choice: PredictionOption
    cast_at: UtcDatetime = Field(default_factory=utc_now)


class Payout(EmbeddedModel):
    """Points awarded to one winning voter at resolution."""

    voter_id: str
    voter_username: str
    points: int = Field(ge=0)


def compute_payouts(
    ballots: list[Ballot],
    winning_option: PredictionOption | str,
    stake_per_vote: int,
) -> list[Payout]:
    """
    Split the losing side's stakes between the winning voters.

    Every ballot stakes ``stake_per_vote`` points. The pool formed by the
    losing ballots is divided equally among the winning ballots (one ballot,
    one share). The integer-division remainder goes to the earliest winning
    ballot so that the payouts always sum to the whole pool.

    Args:
        ballots: Ballots in the order they were cast
        winning_option: The declared outcome
        stake_per_vote: Notional stake of one ballot

    Returns:
        One payout per winning ballot, in casting order. Empty when nobody
        picked the winning option.
    """
    winners = [b for b in ballots if b.choice == winning_option]
    if not winners:
        return []

    pool = (len(ballots) - len(winners)) * stake_per_vote
    share, remainder = divmod(pool, len(winners))

    payouts = [
        Payout(voter_id=b.voter_id, voter_username=b.voter_username, points=share)
        for b in winners
    ]
    payouts[0].points += remainder
    return payouts


class PredictionCreate(BaseModel):
    """Schema for opening a new prediction."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "game_type": "valorant",
                "title": "Will we win this round?",
                "option_a": "Yes",
                "option_b": "No",
                "duration_minutes": 10,
            }
        },
    )

    game_type: str | None = Field(default=None, max_length=50, description="Game being streamed")
    title: str = Field(..., min_length=1, max_length=200, description="Question asked to viewers")
    option_a: OptionLabel = Field(..., description="Label of the first outcome")
    option_b: OptionLabel = Field(..., description="Label of the second outcome")
    # Range is checked by the service so it can report InvalidDuration
    duration_minutes: Any = Field(..., description="Voting window length in minutes")

    @model_validator(mode="after")
    def validate_options_differ(self) -> "PredictionCreate":
        """Ensure the two outcomes are distinguishable."""
        if self.option_a.lower() == self.option_b.lower():
            raise ValueError("option_a and option_b must be different")
        return self


class Prediction(TimestampedModel):
    """
    Full prediction document model.

    Ballots are embedded and mirrored in ``voter_ids`` so that casting a
    vote is a single conditional update of this document.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "_id": "507f1f77bcf86cd799439011",
                "creator_id": "141981764",
                "creator_username": "streamer",
                "title": "Will we win this round?",
                "option_a": "Yes",
                "option_b": "No",
                "status": "active",
                "votes_a": 2,
                "votes_b": 1,
                "total_votes": 3,
                "points_distributed": 0,
            }
        },
    )

    creator_id: str = Field(..., description="Twitch id of the creator")
    creator_username: str = Field(..., description="Twitch login of the creator")
    game_type: str | None = None
    title: str = Field(..., min_length=1, max_length=200)
    option_a: OptionLabel
    option_b: OptionLabel

    status: PredictionStatus = Field(default=PredictionStatus.ACTIVE)
    ends_at: UtcDatetime = Field(..., description="End of the voting window (UTC)")
    closed_at: UtcDatetime | None = None
    resolved_at: UtcDatetime | None = None

    # Tallies
    votes_a: int = Field(default=0, ge=0)
    votes_b: int = Field(default=0, ge=0)
    total_votes: int = Field(default=0, ge=0)

    # Resolution
    stake_per_vote: int = Field(default=10, ge=1)
    winning_option: PredictionOption | None = None
    points_distributed: int = Field(default=0, ge=0)
    payouts: list[Payout] = Field(default_factory=list)
    payouts_settled: bool = False

    ballots: list[Ballot] = Field(default_factory=list)
    voter_ids: list[str] = Field(default_factory=list)

    @field_validator("game_type")
    @classmethod
    def blank_game_type_to_none(cls, v: str | None) -> str | None:
        """Store a missing game type as null rather than an empty string."""
        return v or None

    @model_validator(mode="after")
    def validate_tally(self) -> "Prediction":
        """Totals must always match the per-option tallies."""
        if self.total_votes != self.votes_a + self.votes_b:
            raise ValueError(
                f"total_votes ({self.total_votes}) must equal "
                f"votes_a + votes_b ({self.votes_a + self.votes_b})"
            )
        return self

    @classmethod
    def from_create(
        cls,
        creator_id: str,
        creator_username: str,
        data: PredictionCreate,
        *,
        stake_per_vote: int,
        now: datetime | None = None,
    ) -> "Prediction":
        """Build a new active prediction from creation data."""
        now = now or utc_now()
        return cls(
            creator_id=creator_id,
            creator_username=creator_username,
            game_type=data.game_type,
            title=data.title,
            option_a=data.option_a,
            option_b=data.option_b,
            stake_per_vote=stake_per_vote,
            created_at=now,
            updated_at=now,
            ends_at=now + timedelta(minutes=data.duration_minutes),
        )

    def label_for(self, option: PredictionOption | str) -> str:
        """Human-readable label of an option."""
        return self.option_a if option == PredictionOption.OPTION_A else self.option_b

    def has_voted(self, voter_id: str) -> bool:
        """Whether the given viewer already cast a ballot."""
        return voter_id in self.voter_ids

    def is_expired(self, now: datetime) -> bool:
        """Whether the voting window has elapsed."""
        return now >= self.ends_at

    def accepts_votes(self, now: datetime) -> bool:
        """Whether a new ballot may be cast at ``now``."""
        return self.status == PredictionStatus.ACTIVE and not self.is_expired(now)

    @property
    def can_resolve(self) -> bool:
        """
        Whether the creator may declare a winner.

        Resolving an active prediction closes voting at the same time.
        """
        return self.status in (PredictionStatus.ACTIVE, PredictionStatus.CLOSED)

    @computed_field  # type: ignore[misc]
    @property
    def percent_a(self) -> float:
        """Share of ballots for option A, in percent."""
        if self.total_votes == 0:
            return 0.0
        return round(self.votes_a / self.total_votes * 100, 2)

    @computed_field  # type: ignore[misc]
    @property
    def percent_b(self) -> float:
        """Share of ballots for option B, in percent."""
        if self.total_votes == 0:
            return 0.0
        return round(self.votes_b / self.total_votes * 100, 2)

    def to_response(self) -> dict[str, Any]:
        """JSON form returned by the API (voter id index omitted)."""
        return self.to_json_dict(exclude={"voter_ids"})
