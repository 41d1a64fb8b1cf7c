"""Domain enumerations for the automation rule engine.

Enums represent fixed sets of domain values (trigger events, condition
block operators, condition languages, evaluation timing).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class AutomationEvent(_ValuesMixin, str, Enum):
    """Event that fires an automation.

    actionSucceeded and actionFailed are sequential: they are fired by another
    action instance finishing, so the automation is an edge in the trigger graph.
    """

    PUB_ENTERED_STAGE = "pubEnteredStage"
    PUB_LEFT_STAGE = "pubLeftStage"
    PUB_IN_STAGE_FOR_DURATION = "pubInStageForDuration"
    ACTION_SUCCEEDED = "actionSucceeded"
    ACTION_FAILED = "actionFailed"
    WEBHOOK = "webhook"


SEQUENTIAL_AUTOMATION_EVENTS: frozenset[AutomationEvent] = frozenset(
    {AutomationEvent.ACTION_SUCCEEDED, AutomationEvent.ACTION_FAILED}
)


def is_sequential_event(event: AutomationEvent | str) -> bool:
    """Return True when the event is fired by another action instance finishing."""
    try:
        return AutomationEvent(event) in SEQUENTIAL_AUTOMATION_EVENTS
    except ValueError:
        return False


class ConditionBlockType(_ValuesMixin, str, Enum):
    """Boolean operator of a condition block."""

    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class ConditionType(_ValuesMixin, str, Enum):
    """Language of a leaf condition expression."""

    JSONATA = "jsonata"


class ConditionEvaluationTiming(_ValuesMixin, str, Enum):
    """When the runtime evaluates an automation's conditions."""

    ON_TRIGGER = "onTrigger"
    ON_EXECUTION = "onExecution"
    BOTH = "both"
