"""
Prediction repository for database operations on predictions.

Every state change is a single conditional ``find_one_and_update``: the
filter encodes the precondition (status, voter not yet seen, tally as
read) and the update is only applied when it still holds. A None result
means the precondition failed; the service re-reads the document to
report why.
"""

from datetime import datetime
from typing import Any

from bson import ObjectId

from stream11.models.base import utc_now
from stream11.models.prediction import (
    Ballot,
    Payout,
    Prediction,
    PredictionOption,
    PredictionStatus,
)
from stream11.repositories.base import BaseRepository


class PredictionRepository(BaseRepository[Prediction]):
    """
    Repository for prediction document operations.

    Handles creation, listing and the guarded state transitions.
    """

    collection_name = "predictions"
    model_class = Prediction

    async def list_predictions(
        self,
        *,
        status: PredictionStatus | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Prediction]:
        """
        List predictions, newest first.

        Args:
            status: Only return predictions in this status
            skip: Number of documents to skip
            limit: Maximum number of documents to return

        Returns:
            List of predictions
        """
        query: dict[str, Any] = {}
        if status is not None:
            query["status"] = status

        return await self.find_many(
            query,
            skip=skip,
            limit=limit,
            sort=[("created_at", -1)],
        )

    async def record_vote(self, prediction_id: ObjectId, ballot: Ballot) -> Prediction | None:
        """
        Count a ballot and remember the voter in one atomic update.

        Matches only while the prediction is active, its window is still
        open at the ballot's cast time and the voter has not voted yet. Two
        concurrent ballots from one viewer can never both be counted, and a
        counted ballot is always recorded.

        Args:
            prediction_id: Prediction's ObjectId
            ballot: The ballot to cast

        Returns:
            Updated prediction, or None if the guard did not match
        """
        tally_field = "votes_a" if ballot.choice == PredictionOption.OPTION_A else "votes_b"

        return await self.find_one_and_update(
            {
                "_id": prediction_id,
                "status": PredictionStatus.ACTIVE.value,
                "ends_at": {"$gt": ballot.cast_at},
                "voter_ids": {"$ne": ballot.voter_id},
            },
            {
                "$inc": {tally_field: 1, "total_votes": 1},
                "$push": {
                    "ballots": ballot.to_dict(),
                    "voter_ids": ballot.voter_id,
                },
            },
            now=ballot.cast_at,
        )

    async def mark_closed(
        self,
        prediction_id: ObjectId,
        now: datetime | None = None,
    ) -> Prediction | None:
        """
        Move an active prediction to closed.

        Returns:
            Updated prediction, or None if it was not active
        """
        now = now or utc_now()
        return await self.find_one_and_update(
            {"_id": prediction_id, "status": PredictionStatus.ACTIVE.value},
            {"$set": {"status": PredictionStatus.CLOSED.value, "closed_at": now}},
            now=now,
        )

    async def mark_resolved(
        self,
        prediction: Prediction,
        *,
        winning_option: PredictionOption,
        payouts: list[Payout],
        now: datetime | None = None,
    ) -> Prediction | None:
        """
        Write the outcome and the payout ledger in one atomic update.

        The filter pins the status and vote count that the payouts were
        computed from, so a concurrent vote or resolution makes this a no-op
        instead of storing stale payouts.

        Args:
            prediction: The prediction as read when the payouts were computed
            winning_option: The declared outcome
            payouts: Points owed to each winning voter
            now: Resolution timestamp

        Returns:
            Updated prediction, or None if the document changed meanwhile
        """
        now = now or utc_now()
        update: dict[str, Any] = {
            "$set": {
                "status": PredictionStatus.RESOLVED.value,
                "winning_option": PredictionOption(winning_option).value,
                "payouts": [payout.to_dict() for payout in payouts],
                "points_distributed": sum(payout.points for payout in payouts),
                "payouts_settled": False,
                "resolved_at": now,
                "closed_at": prediction.closed_at or now,
            }
        }

        return await self.find_one_and_update(
            {
                "_id": prediction.id,
                "status": prediction.status,
                "total_votes": prediction.total_votes,
            },
            update,
            now=now,
        )

    async def mark_payouts_settled(self, prediction_id: ObjectId) -> Prediction | None:
        """Record that every payout of a resolved prediction was credited."""
        return await self.find_one_and_update(
            {"_id": prediction_id, "status": PredictionStatus.RESOLVED.value},
            {"$set": {"payouts_settled": True}},
        )

    async def find_unsettled(self, limit: int = 100) -> list[Prediction]:
        """Resolved predictions whose payouts were not all credited."""
        return await self.find_many(
            {"status": PredictionStatus.RESOLVED.value, "payouts_settled": False},
            limit=limit,
            sort=[("resolved_at", 1)],
        )
