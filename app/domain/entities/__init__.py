"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from app.domain.entities.action_instance import ActionInstanceEntity
from app.domain.entities.automation import AutomationEntity

__all__ = [
    "ActionInstanceEntity",
    "AutomationEntity",
]
