"""Automation domain entity.

An automation is a trigger rule: when `event` fires (optionally because
`source_action_instance_id` finished), run `action_instance_id`. Sequential
automations are the edges of the trigger graph.
"""

from dataclasses import dataclass
from typing import Any

from app.domain.enums import AutomationEvent, ConditionEvaluationTiming, is_sequential_event


@dataclass
class AutomationEntity:
    """Domain entity for a persisted trigger rule."""

    id: str
    event: AutomationEvent
    action_instance_id: str
    source_action_instance_id: str | None = None
    config: dict[str, Any] | None = None
    condition_evaluation_timing: ConditionEvaluationTiming | None = None
    condition_root_id: str | None = None

    def is_sequential(self) -> bool:
        """Return whether this automation is fired by another action instance."""
        return is_sequential_event(self.event) and self.source_action_instance_id is not None

    def edge(self) -> tuple[str, str] | None:
        """Return (source, target) when this automation is a trigger-graph edge."""
        if not self.is_sequential():
            return None
        assert self.source_action_instance_id is not None
        return (self.source_action_instance_id, self.action_instance_id)
