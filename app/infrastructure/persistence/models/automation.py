"""Automation, AutomationConditionBlock and AutomationCondition ORM models.

An automation row is a trigger rule; sequential automations
(actionSucceeded / actionFailed) carry source_action_instance_id and are the
edges of the trigger graph. Condition blocks and conditions form the
automation's boolean tree through parent_block_id, ordered among siblings by
rank. Ranks use the "C" collation so SQL ordering matches byte order.
"""

from typing import Any

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.enums import (
    SEQUENTIAL_AUTOMATION_EVENTS,
    AutomationEvent,
    ConditionBlockType,
    ConditionEvaluationTiming,
    ConditionType,
)
from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import TimestampedModel

SEQUENTIAL_CONSTRAINT_NAME = "uq_automation_sequential"
NON_SEQUENTIAL_CONSTRAINT_NAME = "uq_automation_event_action_instance"


def _in_list(column: str, values: list[str]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


_SEQUENTIAL_EVENTS_SQL = _in_list(
    "event", sorted(e.value for e in SEQUENTIAL_AUTOMATION_EVENTS)
)


class Automation(TimestampedModel, Base):
    """Automation. Table: automation.

    Unique (event, source_action_instance_id, action_instance_id) for sequential
    rows and (event, action_instance_id) for the rest, as two partial indexes
    whose names identify which duplicate fired.
    """

    __tablename__ = "automation"

    event: Mapped[str] = mapped_column(String, nullable=False)
    action_instance_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("action_instance.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_action_instance_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("action_instance.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    config: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    condition_evaluation_timing: Mapped[str | None] = mapped_column(
        String, nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            _in_list("event", AutomationEvent.values()), name="automation_event_check"
        ),
        CheckConstraint(
            "condition_evaluation_timing IS NULL OR "
            + _in_list("condition_evaluation_timing", ConditionEvaluationTiming.values()),
            name="automation_condition_evaluation_timing_check",
        ),
        CheckConstraint(
            f"({_SEQUENTIAL_EVENTS_SQL}) = (source_action_instance_id IS NOT NULL)",
            name="automation_source_matches_event_check",
        ),
        Index(
            SEQUENTIAL_CONSTRAINT_NAME,
            "event",
            "source_action_instance_id",
            "action_instance_id",
            unique=True,
            postgresql_where=sa.text("source_action_instance_id IS NOT NULL"),
        ),
        Index(
            NON_SEQUENTIAL_CONSTRAINT_NAME,
            "event",
            "action_instance_id",
            unique=True,
            postgresql_where=sa.text("source_action_instance_id IS NULL"),
        ),
    )


class AutomationConditionBlock(TimestampedModel, Base):
    """Condition block (AND/OR/NOT). Table: automation_condition_block.

    parent_block_id is NULL only for the root; one root per automation.
    """

    __tablename__ = "automation_condition_block"

    automation_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("automation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_block_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("automation_condition_block.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    rank: Mapped[str] = mapped_column(String(collation="C"), nullable=False)

    __table_args__ = (
        CheckConstraint(
            _in_list("type", ConditionBlockType.values()),
            name="automation_condition_block_type_check",
        ),
        Index(
            "uq_automation_condition_block_root",
            "automation_id",
            unique=True,
            postgresql_where=sa.text("parent_block_id IS NULL"),
        ),
        Index(
            "uq_automation_condition_block_sibling_rank",
            "parent_block_id",
            "rank",
            unique=True,
        ),
    )


class AutomationCondition(TimestampedModel, Base):
    """Leaf condition. Table: automation_condition. Always has a parent block."""

    __tablename__ = "automation_condition"

    automation_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("automation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_block_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("automation_condition_block.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    expression: Mapped[str] = mapped_column(Text, nullable=False)
    rank: Mapped[str] = mapped_column(String(collation="C"), nullable=False)

    __table_args__ = (
        CheckConstraint(
            _in_list("type", ConditionType.values()),
            name="automation_condition_type_check",
        ),
        Index(
            "uq_automation_condition_sibling_rank",
            "parent_block_id",
            "rank",
            unique=True,
        ),
    )
