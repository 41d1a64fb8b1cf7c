"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.action_instance import ActionInstance
from app.infrastructure.persistence.models.automation import (
    Automation,
    AutomationCondition,
    AutomationConditionBlock,
)
from app.infrastructure.persistence.models.mixins import (
    CuidMixin,
    TimestampedModel,
    TimestampMixin,
)
from app.infrastructure.persistence.models.stage import Stage

__all__ = [
    "ActionInstance",
    "Automation",
    "AutomationCondition",
    "AutomationConditionBlock",
    "Stage",
    "CuidMixin",
    "TimestampMixin",
    "TimestampedModel",
]
