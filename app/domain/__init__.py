"""Domain layer: entities, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import ActionInstanceEntity, AutomationEntity
from app.domain.enums import (
    AutomationEvent,
    ConditionBlockType,
    ConditionEvaluationTiming,
    ConditionType,
    is_sequential_event,
)
from app.domain.exceptions import (
    AutomationConfigException,
    AutomationCycleException,
    AutomationMaxDepthException,
    AutomationServiceException,
    DuplicateAutomationException,
    DuplicateSequentialAutomationException,
    ResourceNotFoundException,
    ValidationException,
)

__all__ = [
    # Entities
    "ActionInstanceEntity",
    "AutomationEntity",
    # Enums
    "AutomationEvent",
    "ConditionBlockType",
    "ConditionEvaluationTiming",
    "ConditionType",
    "is_sequential_event",
    # Exceptions
    "AutomationConfigException",
    "AutomationCycleException",
    "AutomationMaxDepthException",
    "AutomationServiceException",
    "DuplicateAutomationException",
    "DuplicateSequentialAutomationException",
    "ResourceNotFoundException",
    "ValidationException",
]
