"""Pydantic request/response schemas for the API."""

from app.schemas.automation import (
    AutomationResponse,
    AutomationUpsertRequest,
    ConditionBlockSchema,
    ConditionSchema,
)
from app.schemas.health import HealthResponse, ReadinessResponse

__all__ = [
    "AutomationResponse",
    "AutomationUpsertRequest",
    "ConditionBlockSchema",
    "ConditionSchema",
    "HealthResponse",
    "ReadinessResponse",
]
