"""
Service layer for business logic.

Services orchestrate operations between repositories, handle
validation, and implement business rules. They provide the
main interface for application logic and report failures as
``ServiceError`` subclasses carrying an ``ErrorKind``.
"""

from stream11.services.errors import ErrorKind, ServiceError
from stream11.services.prediction_service import PredictionService
from stream11.services.status_service import StatusService
from stream11.services.user_service import UserService

__all__ = [
    "ErrorKind",
    "ServiceError",
    "UserService",
    "PredictionService",
    "StatusService",
]
