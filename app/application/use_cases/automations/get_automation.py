"""Read automations with their condition trees rebuilt from flat rows."""

from __future__ import annotations

from dataclasses import replace

from app.application.dtos.automation import AutomationResult
from app.application.interfaces.repositories import IAutomationRepository
from app.application.services.condition_tree_flattener import reconstruct_condition_tree
from app.domain.exceptions import ResourceNotFoundException, ValidationException


class GetAutomationUseCase:
    """Loads automations by id, by target action instance, or by stage."""

    def __init__(self, automation_repo: IAutomationRepository) -> None:
        self._automation_repo = automation_repo

    async def get(self, automation_id: str) -> AutomationResult:
        automation = await self._automation_repo.get_by_id(automation_id)
        if not automation:
            raise ResourceNotFoundException("automation", automation_id)
        (result,) = await self._with_conditions([automation])
        return result

    async def list_automations(
        self,
        *,
        action_instance_id: str | None = None,
        stage_id: str | None = None,
    ) -> list[AutomationResult]:
        """List automations for exactly one of action_instance_id or stage_id."""
        if (action_instance_id is None) == (stage_id is None):
            raise ValidationException(
                "Provide exactly one of action_instance_id or stage_id"
            )
        if action_instance_id is not None:
            automations = await self._automation_repo.list_by_action_instance(
                action_instance_id
            )
        else:
            assert stage_id is not None
            automations = await self._automation_repo.list_by_stage(stage_id)
        return await self._with_conditions(automations)

    async def _with_conditions(
        self, automations: list[AutomationResult]
    ) -> list[AutomationResult]:
        if not automations:
            return []
        trees = await self._automation_repo.get_condition_trees(
            [a.id for a in automations]
        )
        results = []
        for automation in automations:
            tree = trees.get(automation.id)
            if tree is None:
                results.append(automation)
                continue
            results.append(
                replace(
                    automation,
                    condition_root_id=tree.root_id,
                    condition=reconstruct_condition_tree(tree.blocks, tree.conditions),
                )
            )
        return results
