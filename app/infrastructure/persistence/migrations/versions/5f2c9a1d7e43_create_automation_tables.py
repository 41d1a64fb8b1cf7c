"""create stage, action_instance, automation and condition tables

Revision ID: 5f2c9a1d7e43
Revises:
Create Date: 2026-10-19 10:12:41.508213

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "5f2c9a1d7e43"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create the automation schema."""
    op.create_table(
        "stage",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("community_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stage_community_id"), "stage", ["community_id"])

    op.create_table(
        "action_instance",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("stage_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("config", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["stage_id"], ["stage.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_action_instance_stage_id"), "action_instance", ["stage_id"])

    op.create_table(
        "automation",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("event", sa.String(), nullable=False),
        sa.Column("action_instance_id", sa.String(), nullable=False),
        sa.Column("source_action_instance_id", sa.String(), nullable=True),
        sa.Column("config", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("condition_evaluation_timing", sa.String(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "event IN ('pubEnteredStage', 'pubLeftStage', 'pubInStageForDuration', "
            "'actionSucceeded', 'actionFailed', 'webhook')",
            name="automation_event_check",
        ),
        sa.CheckConstraint(
            "condition_evaluation_timing IS NULL OR "
            "condition_evaluation_timing IN ('onTrigger', 'onExecution', 'both')",
            name="automation_condition_evaluation_timing_check",
        ),
        sa.CheckConstraint(
            "(event IN ('actionFailed', 'actionSucceeded')) = "
            "(source_action_instance_id IS NOT NULL)",
            name="automation_source_matches_event_check",
        ),
        sa.ForeignKeyConstraint(
            ["action_instance_id"], ["action_instance.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["source_action_instance_id"], ["action_instance.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_automation_action_instance_id"), "automation", ["action_instance_id"]
    )
    op.create_index(
        op.f("ix_automation_source_action_instance_id"),
        "automation",
        ["source_action_instance_id"],
    )
    op.create_index(
        "uq_automation_sequential",
        "automation",
        ["event", "source_action_instance_id", "action_instance_id"],
        unique=True,
        postgresql_where=sa.text("source_action_instance_id IS NOT NULL"),
    )
    op.create_index(
        "uq_automation_event_action_instance",
        "automation",
        ["event", "action_instance_id"],
        unique=True,
        postgresql_where=sa.text("source_action_instance_id IS NULL"),
    )

    op.create_table(
        "automation_condition_block",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("automation_id", sa.String(), nullable=False),
        sa.Column("parent_block_id", sa.String(), nullable=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("rank", sa.String(collation="C"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('AND', 'OR', 'NOT')", name="automation_condition_block_type_check"
        ),
        sa.ForeignKeyConstraint(["automation_id"], ["automation.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["parent_block_id"], ["automation_condition_block.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_automation_condition_block_automation_id"),
        "automation_condition_block",
        ["automation_id"],
    )
    op.create_index(
        op.f("ix_automation_condition_block_parent_block_id"),
        "automation_condition_block",
        ["parent_block_id"],
    )
    op.create_index(
        "uq_automation_condition_block_root",
        "automation_condition_block",
        ["automation_id"],
        unique=True,
        postgresql_where=sa.text("parent_block_id IS NULL"),
    )
    op.create_index(
        "uq_automation_condition_block_sibling_rank",
        "automation_condition_block",
        ["parent_block_id", "rank"],
        unique=True,
    )

    op.create_table(
        "automation_condition",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("automation_id", sa.String(), nullable=False),
        sa.Column("parent_block_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("expression", sa.Text(), nullable=False),
        sa.Column("rank", sa.String(collation="C"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("type IN ('jsonata')", name="automation_condition_type_check"),
        sa.ForeignKeyConstraint(["automation_id"], ["automation.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["parent_block_id"], ["automation_condition_block.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_automation_condition_automation_id"),
        "automation_condition",
        ["automation_id"],
    )
    op.create_index(
        op.f("ix_automation_condition_parent_block_id"),
        "automation_condition",
        ["parent_block_id"],
    )
    op.create_index(
        "uq_automation_condition_sibling_rank",
        "automation_condition",
        ["parent_block_id", "rank"],
        unique=True,
    )


def downgrade() -> None:
    """Drop the automation schema."""
    op.drop_table("automation_condition")
    op.drop_table("automation_condition_block")
    op.drop_index("uq_automation_event_action_instance", table_name="automation")
    op.drop_index("uq_automation_sequential", table_name="automation")
    op.drop_table("automation")
    op.drop_table("action_instance")
    op.drop_table("stage")
