"""Action instance domain entity.

An action instance is a configured action attached to a stage. It is a node
in the trigger graph: automations point at it, and sequential automations
also name one as their source.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ActionInstanceEntity:
    """Domain entity for a configured action on a stage."""

    id: str
    name: str
    stage_id: str

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe representation (used in error details)."""
        return {"id": self.id, "name": self.name, "stage_id": self.stage_id}
