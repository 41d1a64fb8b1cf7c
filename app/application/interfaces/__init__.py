"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    IActionInstanceRepository,
    IAutomationRepository,
    ITriggerPathFinder,
)
from app.application.interfaces.services import ITriggerGraphValidator

__all__ = [
    "IActionInstanceRepository",
    "IAutomationRepository",
    "ITriggerGraphValidator",
    "ITriggerPathFinder",
]
