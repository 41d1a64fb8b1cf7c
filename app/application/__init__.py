"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, trigger path finder).
"""

from app.application.interfaces import (
    IActionInstanceRepository,
    IAutomationRepository,
    ITriggerGraphValidator,
    ITriggerPathFinder,
)
from app.application.services.trigger_graph_validator import TriggerGraphValidator
from app.application.use_cases.automations import (
    GetAutomationUseCase,
    RemoveAutomationUseCase,
    UpsertAutomationUseCase,
)

__all__ = [
    "GetAutomationUseCase",
    "IActionInstanceRepository",
    "IAutomationRepository",
    "ITriggerGraphValidator",
    "ITriggerPathFinder",
    "RemoveAutomationUseCase",
    "TriggerGraphValidator",
    "UpsertAutomationUseCase",
]
