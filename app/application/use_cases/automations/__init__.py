"""Automation use cases: upsert (with trigger graph validation), remove, read."""

from app.application.use_cases.automations.get_automation import GetAutomationUseCase
from app.application.use_cases.automations.remove_automation import (
    RemoveAutomationUseCase,
)
from app.application.use_cases.automations.upsert_automation import (
    UpsertAutomationUseCase,
)

__all__ = [
    "GetAutomationUseCase",
    "RemoveAutomationUseCase",
    "UpsertAutomationUseCase",
]
