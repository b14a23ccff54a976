"""
Service error hierarchy.

Every failure a service reports carries an ``ErrorKind``. Services and
repositories never mention HTTP; the API layer maps kinds to status codes
in one place.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Machine-readable failure categories."""

    UNAUTHENTICATED = "unauthenticated"
    EXPIRED_CREDENTIAL = "expired_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    FORBIDDEN = "forbidden"
    USER_NOT_FOUND = "user_not_found"
    OAUTH_EXCHANGE_FAILED = "oauth_exchange_failed"
    OAUTH_PROFILE_FETCH_FAILED = "oauth_profile_fetch_failed"
    PREDICTION_NOT_FOUND = "prediction_not_found"
    PREDICTION_NOT_ACTIVE = "prediction_not_active"
    DUPLICATE_VOTE = "duplicate_vote"
    INVALID_OUTCOME = "invalid_outcome"
    ALREADY_RESOLVED = "already_resolved"
    INVALID_TRANSITION = "invalid_transition"
    INVALID_DURATION = "invalid_duration"
    INVALID_REQUEST = "invalid_request"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class ServiceError(Exception):
    """Base exception for all service errors."""

    kind: ErrorKind = ErrorKind.INTERNAL
    retryable: bool = False

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.kind.value.replace("_", " ").capitalize()
        super().__init__(self.message)


# =============================================================================
# Authentication
# =============================================================================


class UnauthenticatedError(ServiceError):
    """Raised when a request carries no usable session."""

    kind = ErrorKind.UNAUTHENTICATED


class ExpiredCredentialError(UnauthenticatedError):
    """Raised when a session token is past its expiry."""

    kind = ErrorKind.EXPIRED_CREDENTIAL


class InvalidCredentialError(UnauthenticatedError):
    """Raised when a session token is malformed or its signature does not match."""

    kind = ErrorKind.INVALID_CREDENTIAL


class ForbiddenError(ServiceError):
    """Raised when the caller may not act on a resource."""

    kind = ErrorKind.FORBIDDEN


class UserNotFoundError(ServiceError):
    """Raised when user is not found."""

    kind = ErrorKind.USER_NOT_FOUND


# =============================================================================
# OAuth provider
# =============================================================================


class OAuthExchangeFailedError(ServiceError):
    """Raised when Twitch rejects an authorization code."""

    kind = ErrorKind.OAUTH_EXCHANGE_FAILED


class OAuthProfileFetchFailedError(ServiceError):
    """Raised when the Twitch profile cannot be fetched."""

    kind = ErrorKind.OAUTH_PROFILE_FETCH_FAILED


class UpstreamUnavailableError(ServiceError):
    """Raised when a dependency timed out or could not be reached."""

    kind = ErrorKind.UNAVAILABLE
    retryable = True


# =============================================================================
# Predictions
# =============================================================================


class PredictionNotFoundError(ServiceError):
    """Raised when prediction is not found."""

    kind = ErrorKind.PREDICTION_NOT_FOUND


class PredictionNotActiveError(ServiceError):
    """Raised when voting on a prediction that is closed or past its end time."""

    kind = ErrorKind.PREDICTION_NOT_ACTIVE


class DuplicateVoteError(ServiceError):
    """Raised when a viewer already voted on the prediction."""

    kind = ErrorKind.DUPLICATE_VOTE


class InvalidOutcomeError(ServiceError):
    """Raised when a choice or winning option is not one of the two options."""

    kind = ErrorKind.INVALID_OUTCOME


class AlreadyResolvedError(ServiceError):
    """Raised when resolving a prediction a second time."""

    kind = ErrorKind.ALREADY_RESOLVED


class InvalidTransitionError(ServiceError):
    """Raised when a status change is not allowed from the current status."""

    kind = ErrorKind.INVALID_TRANSITION


class InvalidDurationError(ServiceError):
    """Raised when a prediction duration is not a positive integer."""

    kind = ErrorKind.INVALID_DURATION


class InvalidRequestError(ServiceError):
    """Raised when request input is missing or malformed."""

    kind = ErrorKind.INVALID_REQUEST
