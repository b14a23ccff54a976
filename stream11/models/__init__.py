"""
Pydantic models for the stream11 predictions backend.

This module exports all domain models used throughout the application:
- User: Twitch viewer account
- Prediction: two-outcome prediction with embedded ballots and payouts
- StatusCheck: health-check log record
"""

from stream11.models.base import EmbeddedModel, MongoBaseModel, TimestampedModel, utc_now
from stream11.models.prediction import (
    Ballot,
    Payout,
    Prediction,
    PredictionCreate,
    PredictionOption,
    PredictionStatus,
    compute_payouts,
)
from stream11.models.status_check import StatusCheck, StatusCheckCreate
from stream11.models.user import TwitchProfile, User, UserResponse

__all__ = [
    # Base
    "MongoBaseModel",
    "TimestampedModel",
    "EmbeddedModel",
    "utc_now",
    # User
    "User",
    "UserResponse",
    "TwitchProfile",
    # Prediction
    "Prediction",
    "PredictionCreate",
    "PredictionOption",
    "PredictionStatus",
    "Ballot",
    "Payout",
    "compute_payouts",
    # Status
    "StatusCheck",
    "StatusCheckCreate",
]
