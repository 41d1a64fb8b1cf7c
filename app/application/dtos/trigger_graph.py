"""DTOs for trigger graph traversal and the cycle-check outcome."""

from dataclasses import dataclass

from app.domain.entities import ActionInstanceEntity


@dataclass(frozen=True)
class TerminalPath:
    """Worst terminal branch found by the forward traversal from the candidate target.

    path starts at the target. For a cycle, depth is len(path) and upstream is
    empty. Otherwise depth counts action instances in the whole chain: upstream
    (the longest chain ending at the source) followed by path.
    """

    path: tuple[str, ...]
    depth: int
    is_cycle: bool
    upstream: tuple[str, ...]


@dataclass(frozen=True)
class CycleCheckOk:
    """Adding the edge keeps the trigger graph acyclic and within the depth limit."""


@dataclass(frozen=True)
class CycleDetected:
    """Adding the edge would close a loop; path is the reported chain."""

    path: tuple[ActionInstanceEntity, ...]


@dataclass(frozen=True)
class MaxDepthExceeded:
    """Adding the edge would allow a chain longer than the maximum depth."""

    path: tuple[ActionInstanceEntity, ...]
    depth: int


CycleCheckResult = CycleCheckOk | CycleDetected | MaxDepthExceeded
