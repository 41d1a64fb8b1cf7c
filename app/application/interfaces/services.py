"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.application.dtos.trigger_graph import CycleCheckResult


# Trigger graph validator interface
class ITriggerGraphValidator(Protocol):
    """Protocol for checking a candidate sequential edge source -> target."""

    async def check_cycle(
        self,
        target_id: str,
        source_id: str,
        max_depth: int,
        *,
        exclude_automation_id: str | None = None,
    ) -> CycleCheckResult:
        """Return CycleCheckOk, CycleDetected or MaxDepthExceeded. Never raises for graph shape."""
