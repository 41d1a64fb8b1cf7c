"""Remove automation use case."""

from __future__ import annotations

from app.application.interfaces.repositories import IAutomationRepository
from app.domain.exceptions import ResourceNotFoundException
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class RemoveAutomationUseCase:
    """Deletes an automation; its condition blocks and conditions cascade."""

    def __init__(self, automation_repo: IAutomationRepository) -> None:
        self._automation_repo = automation_repo

    async def execute(self, automation_id: str) -> None:
        """Raise ResourceNotFoundException if the automation does not exist."""
        deleted = await self._automation_repo.delete_automation(automation_id)
        if not deleted:
            raise ResourceNotFoundException("automation", automation_id)
        logger.info("Removed automation %s", automation_id)
