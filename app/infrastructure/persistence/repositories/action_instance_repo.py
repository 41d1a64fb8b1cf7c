"""ActionInstance repository. Returns domain entities."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities import ActionInstanceEntity
from app.infrastructure.persistence.models.action_instance import ActionInstance
from app.infrastructure.persistence.repositories.base import BaseRepository


def _to_entity(r: ActionInstance) -> ActionInstanceEntity:
    """Map ORM ActionInstance to ActionInstanceEntity."""
    return ActionInstanceEntity(id=r.id, name=r.name, stage_id=r.stage_id)


class ActionInstanceRepository(BaseRepository[ActionInstance]):
    """Action instance lookups for automation validation and error reporting."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, ActionInstance)

    async def get_many_by_ids(
        self, action_instance_ids: Sequence[str]
    ) -> dict[str, ActionInstanceEntity]:
        """Return action instances keyed by id; unknown ids are omitted."""
        if not action_instance_ids:
            return {}
        result = await self.db.execute(
            select(ActionInstance).where(ActionInstance.id.in_(set(action_instance_ids)))
        )
        return {r.id: _to_entity(r) for r in result.scalars().all()}

    async def create_action_instance(
        self,
        stage_id: str,
        name: str,
        action: str,
        config: dict | None = None,
    ) -> ActionInstanceEntity:
        """Create an action instance on a stage."""
        created = await self.create(
            ActionInstance(stage_id=stage_id, name=name, action=action, config=config)
        )
        return _to_entity(created)
