"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs or domain entities only; no infrastructure imports.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.automation import AutomationResult
    from app.application.dtos.condition_tree import FlattenedConditionTree
    from app.application.dtos.trigger_graph import TerminalPath
    from app.domain.entities import ActionInstanceEntity
    from app.domain.enums import AutomationEvent, ConditionEvaluationTiming


# Trigger graph traversal interface
class ITriggerPathFinder(Protocol):
    """Protocol for the bounded-depth reachability query over sequential automations."""

    async def find_terminal_path(
        self,
        target_id: str,
        source_id: str,
        max_depth: int,
        *,
        exclude_automation_id: str | None = None,
    ) -> TerminalPath | None:
        """Return the worst terminal branch reachable from target, or None when the edge is safe.

        Follows existing edges source_action_instance_id -> action_instance_id.
        First pass: walking at most max_depth nodes from target, a branch is
        terminal when it reaches source (direct cycle) or revisits a node on
        its own path (indirect cycle). Only without a cycle, second pass: the
        walk starts at depth len(longest chain ending at source) + 1 and a
        branch is terminal once that depth exceeds max_depth. Within a pass
        the deeper branch wins, then the smallest id path.
        exclude_automation_id ignores that automation's current edge (edit in place).
        """


# Action instance repository interface
class IActionInstanceRepository(Protocol):
    """Protocol for action instance lookups (nodes of the trigger graph)."""

    async def get_many_by_ids(
        self, action_instance_ids: Sequence[str]
    ) -> dict[str, ActionInstanceEntity]:
        """Return action instances keyed by id; unknown ids are omitted."""


# Automation repository interface
class IAutomationRepository(Protocol):
    """Protocol for automation rows and their condition subtrees."""

    async def upsert_automation(
        self,
        automation_id: str,
        event: AutomationEvent,
        action_instance_id: str,
        source_action_instance_id: str | None,
        config: dict[str, Any] | None,
        condition_evaluation_timing: ConditionEvaluationTiming | None,
    ) -> AutomationResult:
        """Insert the automation or replace every column of the existing row with this id.

        Raises DuplicateSequentialAutomationException or DuplicateAutomationException
        when a uniqueness constraint fires.
        """

    async def delete_condition_tree(self, automation_id: str) -> None:
        """Delete every condition block and condition owned by the automation."""

    async def insert_condition_tree(
        self, automation_id: str, tree: FlattenedConditionTree
    ) -> None:
        """Bulk insert blocks (parents first) then conditions."""

    async def get_by_id(self, automation_id: str) -> AutomationResult | None:
        """Return the automation row (without condition tree), or None."""

    async def list_by_action_instance(
        self, action_instance_id: str
    ) -> list[AutomationResult]:
        """Return automations that run the given action instance."""

    async def list_by_stage(self, stage_id: str) -> list[AutomationResult]:
        """Return automations that run any action instance of the stage."""

    async def get_condition_trees(
        self, automation_ids: Sequence[str]
    ) -> dict[str, FlattenedConditionTree]:
        """Return stored condition rows per automation; automations without a tree are omitted."""

    async def delete_automation(self, automation_id: str) -> bool:
        """Delete the automation (its condition subtree cascades). Return False if missing."""
