"""Automation repository: automation rows and their condition trees. Returns application DTOs."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.automation import AutomationResult
from app.application.dtos.condition_tree import (
    FlatCondition,
    FlatConditionBlock,
    FlattenedConditionTree,
)
from app.domain.enums import (
    AutomationEvent,
    ConditionBlockType,
    ConditionEvaluationTiming,
    ConditionType,
)
from app.domain.exceptions import (
    DuplicateAutomationException,
    DuplicateSequentialAutomationException,
)
from app.infrastructure.persistence.models.action_instance import ActionInstance
from app.infrastructure.persistence.models.automation import (
    NON_SEQUENTIAL_CONSTRAINT_NAME,
    SEQUENTIAL_CONSTRAINT_NAME,
    Automation,
    AutomationCondition,
    AutomationConditionBlock,
)
from app.infrastructure.persistence.repositories.base import BaseRepository


def _to_result(r: Automation) -> AutomationResult:
    """Map ORM Automation to AutomationResult (condition tree not attached)."""
    return AutomationResult(
        id=r.id,
        event=AutomationEvent(r.event),
        action_instance_id=r.action_instance_id,
        source_action_instance_id=r.source_action_instance_id,
        config=r.config,
        condition_evaluation_timing=(
            ConditionEvaluationTiming(r.condition_evaluation_timing)
            if r.condition_evaluation_timing
            else None
        ),
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _violated_constraint(exc: IntegrityError) -> str | None:
    """Name of the constraint behind an IntegrityError, when the driver reports it."""
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
        diag = getattr(candidate, "diag", None)
        if diag is not None and getattr(diag, "constraint_name", None):
            return diag.constraint_name
    message = str(orig)
    for name in (SEQUENTIAL_CONSTRAINT_NAME, NON_SEQUENTIAL_CONSTRAINT_NAME):
        if name in message:
            return name
    return None


class AutomationRepository(BaseRepository[Automation]):
    """Automation repository. Condition rows are always written and read per automation."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Automation)

    async def upsert_automation(
        self,
        automation_id: str,
        event: AutomationEvent,
        action_instance_id: str,
        source_action_instance_id: str | None,
        config: dict[str, Any] | None,
        condition_evaluation_timing: ConditionEvaluationTiming | None,
    ) -> AutomationResult:
        """Insert the automation, or replace every mutable column of the row with this id.

        Raises:
            DuplicateSequentialAutomationException: (event, source, target) already taken.
            DuplicateAutomationException: (event, target) already taken by a non-sequential row.
        """
        values = {
            "event": AutomationEvent(event).value,
            "action_instance_id": action_instance_id,
            "source_action_instance_id": source_action_instance_id,
            "config": config,
            "condition_evaluation_timing": (
                ConditionEvaluationTiming(condition_evaluation_timing).value
                if condition_evaluation_timing
                else None
            ),
        }
        stmt = (
            pg_insert(Automation)
            .values(id=automation_id, **values)
            .on_conflict_do_update(
                index_elements=[Automation.id],
                set_={**values, "updated_at": func.now()},
            )
            .returning(Automation)
        )
        try:
            # savepoint: a duplicate leaves the outer transaction usable
            async with self.db.begin_nested():
                result = await self.db.scalars(
                    stmt, execution_options={"populate_existing": True}
                )
                row = result.one()
        except IntegrityError as e:
            constraint = _violated_constraint(e)
            if constraint == SEQUENTIAL_CONSTRAINT_NAME and source_action_instance_id:
                raise DuplicateSequentialAutomationException(
                    values["event"], action_instance_id, source_action_instance_id
                ) from None
            if constraint == NON_SEQUENTIAL_CONSTRAINT_NAME:
                raise DuplicateAutomationException(
                    values["event"], action_instance_id
                ) from None
            raise
        return _to_result(row)

    async def delete_condition_tree(self, automation_id: str) -> None:
        """Delete every condition block and condition owned by the automation."""
        await self.db.execute(
            delete(AutomationCondition).where(
                AutomationCondition.automation_id == automation_id
            )
        )
        await self.db.execute(
            delete(AutomationConditionBlock).where(
                AutomationConditionBlock.automation_id == automation_id
            )
        )

    async def insert_condition_tree(
        self, automation_id: str, tree: FlattenedConditionTree
    ) -> None:
        """Bulk insert blocks (pre-order, parents first) then conditions."""
        if tree.blocks:
            await self.db.execute(
                insert(AutomationConditionBlock),
                [
                    {
                        "id": b.id,
                        "automation_id": automation_id,
                        "parent_block_id": b.parent_block_id,
                        "type": ConditionBlockType(b.type).value,
                        "rank": b.rank,
                    }
                    for b in tree.blocks
                ],
            )
        if tree.conditions:
            await self.db.execute(
                insert(AutomationCondition),
                [
                    {
                        "id": c.id,
                        "automation_id": automation_id,
                        "parent_block_id": c.parent_block_id,
                        "type": ConditionType(c.type).value,
                        "expression": c.expression,
                        "rank": c.rank,
                    }
                    for c in tree.conditions
                ],
            )

    async def get_by_id(self, automation_id: str) -> AutomationResult | None:
        """Return the automation row (without condition tree), or None."""
        row = await super().get_by_id(automation_id)
        return _to_result(row) if row else None

    async def list_by_action_instance(
        self, action_instance_id: str
    ) -> list[AutomationResult]:
        """Return automations that run the given action instance, oldest first."""
        result = await self.db.execute(
            select(Automation)
            .where(Automation.action_instance_id == action_instance_id)
            .order_by(Automation.created_at.asc(), Automation.id.asc())
        )
        return [_to_result(r) for r in result.scalars().all()]

    async def list_by_stage(self, stage_id: str) -> list[AutomationResult]:
        """Return automations that run any action instance of the stage, oldest first."""
        result = await self.db.execute(
            select(Automation)
            .join(ActionInstance, ActionInstance.id == Automation.action_instance_id)
            .where(ActionInstance.stage_id == stage_id)
            .order_by(Automation.created_at.asc(), Automation.id.asc())
        )
        return [_to_result(r) for r in result.scalars().all()]

    async def get_condition_trees(
        self, automation_ids: Sequence[str]
    ) -> dict[str, FlattenedConditionTree]:
        """Return stored condition rows per automation; automations without a tree are omitted."""
        if not automation_ids:
            return {}
        ids = set(automation_ids)
        block_rows = (
            await self.db.execute(
                select(AutomationConditionBlock).where(
                    AutomationConditionBlock.automation_id.in_(ids)
                )
            )
        ).scalars().all()
        condition_rows = (
            await self.db.execute(
                select(AutomationCondition).where(
                    AutomationCondition.automation_id.in_(ids)
                )
            )
        ).scalars().all()

        blocks: dict[str, list[FlatConditionBlock]] = {}
        roots: dict[str, str] = {}
        for b in block_rows:
            blocks.setdefault(b.automation_id, []).append(
                FlatConditionBlock(
                    id=b.id,
                    type=ConditionBlockType(b.type),
                    rank=b.rank,
                    parent_block_id=b.parent_block_id,
                )
            )
            if b.parent_block_id is None:
                roots[b.automation_id] = b.id
        conditions: dict[str, list[FlatCondition]] = {}
        for c in condition_rows:
            conditions.setdefault(c.automation_id, []).append(
                FlatCondition(
                    id=c.id,
                    type=ConditionType(c.type),
                    expression=c.expression,
                    rank=c.rank,
                    parent_block_id=c.parent_block_id,
                )
            )
        return {
            automation_id: FlattenedConditionTree(
                root_id=root_id,
                blocks=blocks[automation_id],
                conditions=conditions.get(automation_id, []),
            )
            for automation_id, root_id in roots.items()
        }

    async def delete_automation(self, automation_id: str) -> bool:
        """Delete the automation (its condition subtree cascades). Return False if missing."""
        return await self.delete_by_id(automation_id)
