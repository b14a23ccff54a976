"""Prediction routes: listing, creation, voting, closing and resolution."""

from typing import Annotated, Any

from fastapi import APIRouter, Query, status

from stream11.api.dependencies import PredictionServiceDep, SessionDep, SettingsDep
from stream11.api.schemas import ResolveRequest, ResolveResponse, VoteRequest
from stream11.models.prediction import PredictionCreate, PredictionStatus
from stream11.services.errors import InvalidRequestError

router = APIRouter(prefix="/predictions", tags=["predictions"])


@router.get("")
async def list_predictions(
    service: PredictionServiceDep,
    settings: SettingsDep,
    prediction_status: Annotated[PredictionStatus | None, Query(alias="status")] = None,
    limit: Annotated[int | None, Query(ge=1)] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
) -> list[dict[str, Any]]:
    """List predictions newest first, one page at a time."""
    page_size = limit or settings.app.default_page_size
    if page_size > settings.app.max_page_size:
        raise InvalidRequestError(f"limit must be at most {settings.app.max_page_size}")

    predictions = await service.list_predictions(
        status=prediction_status, skip=skip, limit=page_size
    )
    return [prediction.to_response() for prediction in predictions]


@router.get("/{prediction_id}")
async def get_prediction(prediction_id: str, service: PredictionServiceDep) -> dict[str, Any]:
    prediction = await service.get_prediction(prediction_id)
    return prediction.to_response()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_prediction(
    data: PredictionCreate,
    context: SessionDep,
    service: PredictionServiceDep,
) -> dict[str, Any]:
    """Open a prediction as the signed-in viewer."""
    prediction = await service.create_prediction(context.user, data)
    return prediction.to_response()


@router.post("/{prediction_id}/vote")
async def vote(
    prediction_id: str,
    body: VoteRequest,
    context: SessionDep,
    service: PredictionServiceDep,
) -> dict[str, Any]:
    prediction = await service.vote(prediction_id, context.user, body.choice)
    return prediction.to_response()


@router.post("/{prediction_id}/close")
async def close_prediction(
    prediction_id: str,
    context: SessionDep,
    service: PredictionServiceDep,
) -> dict[str, Any]:
    prediction = await service.close_prediction(prediction_id, context.user)
    return prediction.to_response()


@router.post("/{prediction_id}/resolve", response_model=ResolveResponse)
async def resolve_prediction(
    prediction_id: str,
    body: ResolveRequest,
    context: SessionDep,
    service: PredictionServiceDep,
) -> dict[str, Any]:
    """Declare the winner and pay out; returns the prediction and payout summary."""
    prediction = await service.resolve_prediction(prediction_id, context.user, body.winning_option)
    return service.resolution_summary(prediction)
