"""Application use cases: one entry point per workflow."""

from app.application.use_cases.automations import (
    GetAutomationUseCase,
    RemoveAutomationUseCase,
    UpsertAutomationUseCase,
)

__all__ = [
    "GetAutomationUseCase",
    "RemoveAutomationUseCase",
    "UpsertAutomationUseCase",
]
