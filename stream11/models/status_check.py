"""Status check log records used as a trivial health diagnostic."""

import uuid

from pydantic import BaseModel, ConfigDict, Field

from stream11.models.base import utc_now
from stream11.validators.custom_types import UtcDatetime


class StatusCheckCreate(BaseModel):
    """Body of ``POST /status``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    client_name: str = Field(..., min_length=1, max_length=100)


class StatusCheck(BaseModel):
    """An append-only status check record."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    client_name: str
    timestamp: UtcDatetime = Field(default_factory=utc_now)
