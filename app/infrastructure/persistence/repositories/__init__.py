"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.action_instance_repo import (
    ActionInstanceRepository,
)
from app.infrastructure.persistence.repositories.automation_repo import (
    AutomationRepository,
)
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.trigger_graph_repo import (
    TriggerGraphRepository,
)

__all__ = [
    "ActionInstanceRepository",
    "AutomationRepository",
    "BaseRepository",
    "TriggerGraphRepository",
]
