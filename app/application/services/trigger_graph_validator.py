"""Validates that a new sequential automation keeps the trigger graph acyclic and shallow (implements ITriggerGraphValidator)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.application.dtos.trigger_graph import (
    CycleCheckOk,
    CycleCheckResult,
    CycleDetected,
    MaxDepthExceeded,
    TerminalPath,
)
from app.domain.entities import ActionInstanceEntity
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from collections.abc import Sequence

    from app.application.interfaces.repositories import (
        IActionInstanceRepository,
        ITriggerPathFinder,
    )

logger = get_logger(__name__)


def _report_ids(terminal: TerminalPath, source_id: str) -> tuple[str, ...]:
    """Ids of the chain shown to the operator for a terminal branch."""
    path = terminal.path
    if not terminal.is_cycle:
        return terminal.upstream + path
    last = path[-1]
    if last == source_id:
        # closing edge source -> target comes first
        return (source_id, *path)
    return path[path.index(last):]


class TriggerGraphValidator:
    """Checks a candidate edge source -> target against the existing sequential automations."""

    def __init__(
        self,
        path_finder: ITriggerPathFinder,
        action_instance_repo: IActionInstanceRepository,
    ) -> None:
        self._path_finder = path_finder
        self._action_instance_repo = action_instance_repo

    @traced("trigger_graph.check_cycle")
    async def check_cycle(
        self,
        target_id: str,
        source_id: str,
        max_depth: int,
        *,
        exclude_automation_id: str | None = None,
    ) -> CycleCheckResult:
        """Return whether adding source -> target would create a cycle or an overlong chain.

        Args:
            target_id: Action instance the new automation runs.
            source_id: Action instance whose completion fires it.
            max_depth: Maximum number of action instances in any chain.
            exclude_automation_id: Automation being replaced; its current edge is ignored.

        Returns:
            CycleCheckOk, CycleDetected or MaxDepthExceeded. Paths hold action
            instances in trigger order.
        """
        terminal = await self._path_finder.find_terminal_path(
            target_id,
            source_id,
            max_depth,
            exclude_automation_id=exclude_automation_id,
        )
        if terminal is None:
            add_span_attributes(**{"trigger_graph.outcome": "ok"})
            return CycleCheckOk()

        path = await self._resolve(_report_ids(terminal, source_id))
        if terminal.is_cycle:
            add_span_attributes(**{"trigger_graph.outcome": "cycle"})
            logger.info(
                "Rejected automation %s -> %s: cycle %s",
                source_id,
                target_id,
                " -> ".join(p.id for p in path),
            )
            return CycleDetected(path=path)

        add_span_attributes(
            **{"trigger_graph.outcome": "max_depth", "trigger_graph.depth": terminal.depth}
        )
        logger.info(
            "Rejected automation %s -> %s: chain depth %s exceeds %s",
            source_id,
            target_id,
            terminal.depth,
            max_depth,
        )
        return MaxDepthExceeded(path=path, depth=terminal.depth)

    async def _resolve(self, ids: Sequence[str]) -> tuple[ActionInstanceEntity, ...]:
        found = await self._action_instance_repo.get_many_by_ids(list(dict.fromkeys(ids)))
        missing = [i for i in ids if i not in found]
        if missing:
            logger.warning("Action instances missing while reporting path: %s", missing)
        return tuple(
            found.get(i) or ActionInstanceEntity(id=i, name=i, stage_id="") for i in ids
        )
