"""Automation dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.trigger_graph_validator import TriggerGraphValidator
from app.application.use_cases.automations import (
    GetAutomationUseCase,
    RemoveAutomationUseCase,
    UpsertAutomationUseCase,
)
from app.core.config import Settings, get_settings
from app.infrastructure.persistence.repositories import (
    ActionInstanceRepository,
    AutomationRepository,
    TriggerGraphRepository,
)

from .db import get_db, get_db_transactional


async def get_trigger_graph_validator(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> TriggerGraphValidator:
    """Trigger graph validator reading the graph inside the write transaction."""
    return TriggerGraphValidator(
        path_finder=TriggerGraphRepository(db),
        action_instance_repo=ActionInstanceRepository(db),
    )


async def get_upsert_automation_use_case(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    validator: Annotated[TriggerGraphValidator, Depends(get_trigger_graph_validator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UpsertAutomationUseCase:
    """Upsert use case; check and writes share the request transaction."""
    return UpsertAutomationUseCase(
        automation_repo=AutomationRepository(db),
        action_instance_repo=ActionInstanceRepository(db),
        trigger_graph_validator=validator,
        max_stack_depth=settings.automation_max_stack_depth,
    )


async def get_remove_automation_use_case(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> RemoveAutomationUseCase:
    return RemoveAutomationUseCase(automation_repo=AutomationRepository(db))


async def get_automation_query(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> GetAutomationUseCase:
    """Read-only automation lookups."""
    return GetAutomationUseCase(automation_repo=AutomationRepository(db))
