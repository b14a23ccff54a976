"""
Prediction service for business logic.

Handles the prediction lifecycle: opening a prediction, casting ballots,
closing voting and resolving the outcome with point payouts. Coordinates
between repositories and enforces the lifecycle rules.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from stream11.models.base import utc_now
from stream11.models.prediction import (
    Ballot,
    Prediction,
    PredictionCreate,
    PredictionOption,
    PredictionStatus,
    compute_payouts,
)
from stream11.models.user import User
from stream11.repositories.prediction_repository import PredictionRepository
from stream11.services.errors import (
    AlreadyResolvedError,
    DuplicateVoteError,
    ForbiddenError,
    InvalidDurationError,
    InvalidOutcomeError,
    InvalidTransitionError,
    PredictionNotActiveError,
    PredictionNotFoundError,
    UserNotFoundError,
)
from stream11.services.user_service import UserService
from stream11.validators.custom_types import parse_object_id

logger = structlog.get_logger(__name__)

# Optimistic resolve retries before giving up on a busy prediction
MAX_RESOLVE_ATTEMPTS = 3


class PredictionService:
    """
    Service layer for prediction operations.

    Encapsulates the business rules for creating, voting on, closing and
    resolving predictions. Coordinates between the prediction and user
    repositories.

    Usage:
        service = PredictionService(connection.database)
        prediction = await service.create_prediction(user, data)
        await service.vote(prediction.id, voter, "option_a")
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        *,
        stake_per_vote: int = 10,
        max_duration_minutes: int = 10080,
        user_service: UserService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize prediction service.

        Args:
            database: Motor database instance
            stake_per_vote: Notional stake of each ballot, used for payouts
            max_duration_minutes: Longest voting window accepted at creation
            user_service: Service used to credit payouts
            clock: Source of the current time
        """
        self.db = database
        self.prediction_repo = PredictionRepository(database)
        self.user_service = user_service or UserService(database)
        self.stake_per_vote = stake_per_vote
        self.max_duration_minutes = max_duration_minutes
        self.clock = clock

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_prediction(self, prediction_id: str | ObjectId) -> Prediction:
        """
        Get prediction by ID.

        Raises:
            PredictionNotFoundError: If the id is malformed or unknown
        """
        object_id = parse_object_id(prediction_id)
        if object_id is None:
            raise PredictionNotFoundError(f"Prediction not found: {prediction_id}")

        prediction = await self.prediction_repo.get_by_id(object_id)
        if prediction is None:
            raise PredictionNotFoundError(f"Prediction not found: {prediction_id}")
        return prediction

    async def list_predictions(
        self,
        *,
        status: PredictionStatus | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Prediction]:
        """List predictions newest first, optionally filtered by status."""
        return await self.prediction_repo.list_predictions(status=status, skip=skip, limit=limit)

    async def list_unsettled(self) -> list[Prediction]:
        """Resolved predictions whose payouts were not all credited."""
        return await self.prediction_repo.find_unsettled()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_prediction(self, creator: User, data: PredictionCreate) -> Prediction:
        """
        Open a new prediction.

        Args:
            creator: Authenticated viewer opening the prediction
            data: Title, options and voting window

        Returns:
            The stored, active prediction

        Raises:
            InvalidDurationError: If duration_minutes is not a positive integer
                or exceeds the configured maximum
        """
        duration = data.duration_minutes
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidDurationError(
                f"duration_minutes must be a positive integer, got {duration!r}"
            )
        if duration > self.max_duration_minutes:
            raise InvalidDurationError(
                f"duration_minutes must be at most {self.max_duration_minutes}, got {duration}"
            )

        prediction = Prediction.from_create(
            creator.twitch_id,
            creator.username,
            data,
            stake_per_vote=self.stake_per_vote,
            now=self.clock(),
        )
        prediction = await self.prediction_repo.insert(prediction)

        logger.info(
            "Prediction created",
            prediction_id=str(prediction.id),
            creator_id=creator.twitch_id,
            duration_minutes=duration,
        )
        return prediction

    async def vote(
        self,
        prediction_id: str | ObjectId,
        voter: User,
        choice: str,
    ) -> Prediction:
        """
        Cast a viewer's single ballot.

        Args:
            prediction_id: Prediction to vote on
            voter: Authenticated viewer
            choice: "option_a" or "option_b"

        Returns:
            The prediction with the updated tally

        Raises:
            PredictionNotFoundError: If the prediction does not exist
            InvalidOutcomeError: If choice is not one of the two options
            PredictionNotActiveError: If voting is closed or the window elapsed
            DuplicateVoteError: If the viewer already voted
        """
        prediction = await self.get_prediction(prediction_id)

        option = PredictionOption.parse(choice)
        if option is None:
            raise InvalidOutcomeError(f"Choice must be option_a or option_b, got {choice!r}")

        now = self.clock()
        if not prediction.accepts_votes(now):
            raise PredictionNotActiveError("Prediction is not accepting votes")
        if prediction.has_voted(voter.twitch_id):
            raise DuplicateVoteError("You already voted on this prediction")

        ballot = Ballot(
            voter_id=voter.twitch_id,
            voter_username=voter.username,
            choice=option,
            cast_at=now,
        )
        updated = await self.prediction_repo.record_vote(prediction.id, ballot)

        if updated is None:
            # Guard failed between the read and the write; find out why
            current = await self.prediction_repo.get_by_id(prediction.id)
            if current is None:
                raise PredictionNotFoundError(f"Prediction not found: {prediction_id}")
            if current.has_voted(voter.twitch_id):
                raise DuplicateVoteError("You already voted on this prediction")
            raise PredictionNotActiveError("Prediction is not accepting votes")

        logger.info(
            "Vote cast",
            prediction_id=str(updated.id),
            voter_id=voter.twitch_id,
            choice=option.value,
            total_votes=updated.total_votes,
        )
        return updated

    async def close_prediction(self, prediction_id: str | ObjectId, actor: User) -> Prediction:
        """
        Stop voting on an active prediction.

        Raises:
            PredictionNotFoundError: If the prediction does not exist
            ForbiddenError: If the actor did not create the prediction
            InvalidTransitionError: If the prediction is not active
        """
        prediction = await self.get_prediction(prediction_id)
        self._ensure_creator(prediction, actor)

        if prediction.status != PredictionStatus.ACTIVE:
            raise InvalidTransitionError(f"Cannot close a {prediction.status} prediction")

        updated = await self.prediction_repo.mark_closed(prediction.id, now=self.clock())
        if updated is None:
            raise InvalidTransitionError("Prediction is no longer active")

        logger.info("Prediction closed", prediction_id=str(updated.id))
        return updated

    async def resolve_prediction(
        self,
        prediction_id: str | ObjectId,
        actor: User,
        winning_option: str,
    ) -> Prediction:
        """
        Declare the winning option and pay out the losing side's stakes.

        The outcome and the full payout ledger are stored in one guarded
        update before any balance changes, so a prediction is either
        resolved with its payouts recorded or not resolved at all. The
        balances are credited afterwards and ``payouts_settled`` records
        that this finished.

        Args:
            prediction_id: Prediction to resolve
            actor: Authenticated viewer; must be the creator
            winning_option: "option_a" or "option_b"

        Returns:
            The resolved prediction, including payouts and points_distributed

        Raises:
            PredictionNotFoundError: If the prediction does not exist
            ForbiddenError: If the actor did not create the prediction
            InvalidOutcomeError: If winning_option is not one of the two options
            AlreadyResolvedError: If the prediction was resolved before
            InvalidTransitionError: If the prediction keeps changing while resolving
        """
        resolved: Prediction | None = None

        for attempt in range(1, MAX_RESOLVE_ATTEMPTS + 1):
            prediction = await self.get_prediction(prediction_id)
            self._ensure_creator(prediction, actor)

            option = PredictionOption.parse(winning_option)
            if option is None:
                raise InvalidOutcomeError(
                    f"winning_option must be option_a or option_b, got {winning_option!r}"
                )
            if prediction.status == PredictionStatus.RESOLVED:
                raise AlreadyResolvedError("Prediction is already resolved")

            if not prediction.can_resolve:
                raise InvalidTransitionError(f"Cannot resolve a {prediction.status} prediction")

            now = self.clock()
            payouts = compute_payouts(prediction.ballots, option, prediction.stake_per_vote)
            resolved = await self.prediction_repo.mark_resolved(
                prediction, winning_option=option, payouts=payouts, now=now
            )
            if resolved is not None:
                break

            logger.debug(
                "Prediction changed while resolving, retrying",
                prediction_id=str(prediction.id),
                attempt=attempt,
            )

        if resolved is None:
            raise InvalidTransitionError("Prediction kept changing while resolving; try again")

        await self._settle_payouts(resolved)
        settled = await self.prediction_repo.mark_payouts_settled(resolved.id)

        logger.info(
            "Prediction resolved",
            prediction_id=str(resolved.id),
            winning_option=resolved.winning_option,
            winners=len(resolved.payouts),
            points_distributed=resolved.points_distributed,
        )
        return settled or resolved

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _ensure_creator(prediction: Prediction, actor: User) -> None:
        if prediction.creator_id != actor.twitch_id:
            raise ForbiddenError("Only the creator can manage this prediction")

    async def _settle_payouts(self, prediction: Prediction) -> None:
        for payout in prediction.payouts:
            if payout.points <= 0:
                continue
            try:
                await self.user_service.adjust_points(payout.voter_id, payout.points)
            except UserNotFoundError:
                logger.warning(
                    "Payout skipped for unknown user",
                    prediction_id=str(prediction.id),
                    voter_id=payout.voter_id,
                    points=payout.points,
                )

    @staticmethod
    def resolution_summary(prediction: Prediction) -> dict[str, Any]:
        """Response body of a resolve call."""
        return {
            "prediction": prediction.to_response(),
            "payouts": [payout.to_dict() for payout in prediction.payouts],
            "points_distributed": prediction.points_distributed,
        }
