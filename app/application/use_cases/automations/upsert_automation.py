"""Upsert automation use case: trigger graph check, row upsert, condition subtree replace."""

from __future__ import annotations

from dataclasses import replace

from app.application.dtos.automation import AutomationResult, UpsertAutomationCommand
from app.application.dtos.trigger_graph import CycleDetected, MaxDepthExceeded
from app.application.interfaces.repositories import (
    IActionInstanceRepository,
    IAutomationRepository,
)
from app.application.interfaces.services import ITriggerGraphValidator
from app.application.services.automation_config_validator import (
    validate_automation_config,
)
from app.application.services.condition_tree_flattener import (
    flatten_condition_tree,
    reconstruct_condition_tree,
)
from app.domain.enums import is_sequential_event
from app.domain.exceptions import (
    AutomationCycleException,
    AutomationMaxDepthException,
    ResourceNotFoundException,
    ValidationException,
)
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import traced
from app.shared.utils.generators import generate_cuid

logger = get_logger(__name__)


class UpsertAutomationUseCase:
    """Creates or replaces an automation and its condition tree.

    Must run inside one transaction (the caller's session): every check happens
    before the first write, and any exception leaves no partial state behind.
    """

    def __init__(
        self,
        automation_repo: IAutomationRepository,
        action_instance_repo: IActionInstanceRepository,
        trigger_graph_validator: ITriggerGraphValidator,
        *,
        max_stack_depth: int,
    ) -> None:
        self._automation_repo = automation_repo
        self._action_instance_repo = action_instance_repo
        self._validator = trigger_graph_validator
        self._max_stack_depth = max_stack_depth

    @traced("automation.upsert")
    async def execute(self, command: UpsertAutomationCommand) -> AutomationResult:
        """Validate and persist the automation.

        Args:
            command: Automation fields; command.id set means replace that automation.

        Returns:
            The persisted automation with its reconstructed condition tree.

        Raises:
            ValidationException: Source given for a non-sequential event or missing for a sequential one.
            AutomationConfigException: Config does not match the event's schema.
            ResourceNotFoundException: Target or source action instance does not exist.
            AutomationCycleException: The new edge would close a trigger loop.
            AutomationMaxDepthException: The new edge would make a chain longer than max_stack_depth.
            DuplicateSequentialAutomationException: Same (event, source, target) already exists.
            DuplicateAutomationException: Same (event, target) already exists.
        """
        sequential = is_sequential_event(command.event)
        if sequential and not command.source_action_instance_id:
            raise ValidationException(
                f"Event '{command.event.value}' requires source_action_instance_id",
                field="source_action_instance_id",
            )
        if not sequential and command.source_action_instance_id:
            raise ValidationException(
                f"Event '{command.event.value}' does not take source_action_instance_id",
                field="source_action_instance_id",
            )

        validate_automation_config(command.event, command.config)
        await self._ensure_action_instances_exist(command)

        if sequential:
            await self._check_trigger_graph(command)

        automation_id = command.id or generate_cuid()
        automation = await self._automation_repo.upsert_automation(
            automation_id=automation_id,
            event=command.event,
            action_instance_id=command.action_instance_id,
            source_action_instance_id=command.source_action_instance_id,
            config=command.config,
            condition_evaluation_timing=command.condition_evaluation_timing,
        )
        await self._automation_repo.delete_condition_tree(automation_id)

        if command.condition is None:
            logger.info("Upserted automation %s (%s)", automation_id, command.event.value)
            return automation

        tree = flatten_condition_tree(command.condition)
        await self._automation_repo.insert_condition_tree(automation_id, tree)
        logger.info(
            "Upserted automation %s (%s) with %d condition blocks, %d conditions",
            automation_id,
            command.event.value,
            len(tree.blocks),
            len(tree.conditions),
        )
        return replace(
            automation,
            condition_root_id=tree.root_id,
            condition=reconstruct_condition_tree(tree.blocks, tree.conditions),
        )

    async def _ensure_action_instances_exist(self, command: UpsertAutomationCommand) -> None:
        ids = [command.action_instance_id]
        if command.source_action_instance_id:
            ids.append(command.source_action_instance_id)
        found = await self._action_instance_repo.get_many_by_ids(ids)
        for action_instance_id in ids:
            if action_instance_id not in found:
                raise ResourceNotFoundException("action_instance", action_instance_id)

    async def _check_trigger_graph(self, command: UpsertAutomationCommand) -> None:
        assert command.source_action_instance_id is not None
        result = await self._validator.check_cycle(
            command.action_instance_id,
            command.source_action_instance_id,
            self._max_stack_depth,
            exclude_automation_id=command.id,
        )
        if isinstance(result, CycleDetected):
            raise AutomationCycleException(list(result.path))
        if isinstance(result, MaxDepthExceeded):
            raise AutomationMaxDepthException(list(result.path), self._max_stack_depth)
