"""DTOs for automation use cases."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.application.dtos.condition_tree import ConditionBlockInput
from app.domain.enums import AutomationEvent, ConditionEvaluationTiming


@dataclass(frozen=True)
class UpsertAutomationCommand:
    """Input for UpsertAutomationUseCase. id set means insert-or-replace that automation."""

    event: AutomationEvent
    action_instance_id: str
    source_action_instance_id: str | None = None
    config: dict[str, Any] | None = None
    condition_evaluation_timing: ConditionEvaluationTiming | None = None
    condition: ConditionBlockInput | None = None
    id: str | None = None


@dataclass(frozen=True)
class AutomationResult:
    """Automation read-model, optionally with its reconstructed condition tree."""

    id: str
    event: AutomationEvent
    action_instance_id: str
    source_action_instance_id: str | None
    config: dict[str, Any] | None
    condition_evaluation_timing: ConditionEvaluationTiming | None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    condition_root_id: str | None = None
    condition: ConditionBlockInput | None = None
