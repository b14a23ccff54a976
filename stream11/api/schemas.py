"""Request and response bodies that are not domain models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VoteRequest(BaseModel):
    """Body of ``POST /predictions/{id}/vote``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # Validated by the service so an unknown option reports invalid_outcome
    choice: str = Field(..., description="option_a or option_b")


class ResolveRequest(BaseModel):
    """Body of ``POST /predictions/{id}/resolve``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    winning_option: str = Field(..., description="option_a or option_b")


class LoginUrlResponse(BaseModel):
    url: str


class AuthStatusResponse(BaseModel):
    authenticated: bool


class LogoutResponse(BaseModel):
    ok: bool = True


class ResolveResponse(BaseModel):
    prediction: dict[str, Any]
    payouts: list[dict[str, Any]]
    points_distributed: int
