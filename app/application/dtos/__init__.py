"""Application DTOs (no ORM dependency)."""

from app.application.dtos.automation import AutomationResult, UpsertAutomationCommand
from app.application.dtos.condition_tree import (
    ConditionBlockInput,
    ConditionInput,
    ConditionItem,
    FlatCondition,
    FlatConditionBlock,
    FlattenedConditionTree,
)
from app.application.dtos.trigger_graph import (
    CycleCheckOk,
    CycleCheckResult,
    CycleDetected,
    MaxDepthExceeded,
    TerminalPath,
)

__all__ = [
    "AutomationResult",
    "ConditionBlockInput",
    "ConditionInput",
    "ConditionItem",
    "CycleCheckOk",
    "CycleCheckResult",
    "CycleDetected",
    "FlatCondition",
    "FlatConditionBlock",
    "FlattenedConditionTree",
    "MaxDepthExceeded",
    "TerminalPath",
    "UpsertAutomationCommand",
]
