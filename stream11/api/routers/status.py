"""Status check log and health routes."""

from typing import Any

from fastapi import APIRouter, Request, Response, status

from stream11.api.dependencies import StatusServiceDep
from stream11.models.status_check import StatusCheck, StatusCheckCreate

router = APIRouter(tags=["status"])


@router.post("/status", response_model=StatusCheck)
async def create_status_check(body: StatusCheckCreate, service: StatusServiceDep) -> StatusCheck:
    return await service.record(body.client_name)


@router.get("/status", response_model=list[StatusCheck])
async def list_status_checks(service: StatusServiceDep) -> list[StatusCheck]:
    return await service.list_checks()


@router.get("/health")
async def health(request: Request, response: Response) -> dict[str, Any]:
    """Database connectivity; 503 when MongoDB cannot be reached."""
    connection = getattr(request.app.state, "db", None)
    if connection is None:
        result = {"status": "disconnected", "healthy": False, "error": "No active connection"}
    else:
        result = await connection.health_check()

    if not result["healthy"]:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result
