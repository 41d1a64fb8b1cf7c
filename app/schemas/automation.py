"""Automation API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from app.application.dtos.automation import UpsertAutomationCommand
from app.application.dtos.condition_tree import (
    ConditionBlockInput,
    ConditionInput,
    ConditionItem,
)
from app.domain.enums import (
    AutomationEvent,
    ConditionBlockType,
    ConditionEvaluationTiming,
    ConditionType,
)


def _rank_field() -> Any:
    return Field(
        default=None,
        min_length=1,
        pattern=r"^[0-9A-Za-z]*[1-9A-Za-z]$",
        description="Sibling order key; kept verbatim when given, generated otherwise.",
    )


def _item_kind(value: Any) -> str:
    """Tag for a condition item: explicit kind, else 'block' when it has items."""
    if isinstance(value, dict):
        return value.get("kind") or ("block" if "items" in value else "condition")
    return getattr(value, "kind", "condition")


class ConditionSchema(BaseModel):
    """Leaf condition: a boolean expression over the pub."""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["condition"] = "condition"
    id: str | None = None
    type: ConditionType = ConditionType.JSONATA
    expression: str = Field(..., min_length=1)
    rank: str | None = _rank_field()

    def to_input(self) -> ConditionInput:
        return ConditionInput(type=self.type, expression=self.expression, rank=self.rank)


class ConditionBlockSchema(BaseModel):
    """Condition block combining its items with AND / OR / NOT."""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["block"] = "block"
    id: str | None = None
    type: ConditionBlockType
    items: list[ConditionItemSchema] = Field(default_factory=list)
    rank: str | None = _rank_field()

    def to_input(self) -> ConditionBlockInput:
        items: list[ConditionItem] = [item.to_input() for item in self.items]
        return ConditionBlockInput(type=self.type, items=items, rank=self.rank)


ConditionItemSchema = Annotated[
    Annotated[ConditionSchema, Tag("condition")]
    | Annotated[ConditionBlockSchema, Tag("block")],
    Discriminator(_item_kind),
]

ConditionBlockSchema.model_rebuild()


class AutomationUpsertRequest(BaseModel):
    """Request body for POST /automations and PUT /automations/{id}."""

    event: AutomationEvent
    action_instance_id: str = Field(..., min_length=1)
    source_action_instance_id: str | None = Field(
        default=None,
        min_length=1,
        description="Required for actionSucceeded / actionFailed; not allowed otherwise.",
    )
    config: dict[str, Any] | None = None
    condition_evaluation_timing: ConditionEvaluationTiming | None = None
    condition: ConditionBlockSchema | None = Field(
        default=None, description="Root condition block; omit for an unconditional trigger."
    )

    def to_command(self, automation_id: str | None = None) -> UpsertAutomationCommand:
        return UpsertAutomationCommand(
            id=automation_id,
            event=self.event,
            action_instance_id=self.action_instance_id,
            source_action_instance_id=self.source_action_instance_id,
            config=self.config,
            condition_evaluation_timing=self.condition_evaluation_timing,
            condition=self.condition.to_input() if self.condition else None,
        )


class AutomationResponse(BaseModel):
    """Automation with its condition tree."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    event: AutomationEvent
    action_instance_id: str
    source_action_instance_id: str | None
    config: dict[str, Any] | None
    condition_evaluation_timing: ConditionEvaluationTiming | None
    condition_root_id: str | None = None
    condition: ConditionBlockSchema | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
