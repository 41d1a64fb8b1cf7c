"""In-memory trigger graph (implements ITriggerPathFinder).

Mirrors the bounded recursive query used by the Postgres path finder so the
validator can be exercised against a plain adjacency map.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from app.application.dtos.trigger_graph import TerminalPath
from app.domain.entities import AutomationEntity


class InMemoryTriggerGraph:
    """Sequential automations held as edges source -> target, keyed by automation id."""

    def __init__(self) -> None:
        self._edges: dict[str, tuple[str, str]] = {}

    @classmethod
    def from_automations(cls, automations: Iterable[AutomationEntity]) -> InMemoryTriggerGraph:
        graph = cls()
        for automation in automations:
            edge = automation.edge()
            if edge is not None:
                graph.add_edge(automation.id, *edge)
        return graph

    def add_edge(self, automation_id: str, source_id: str, target_id: str) -> None:
        self._edges[automation_id] = (source_id, target_id)

    def remove_edge(self, automation_id: str) -> None:
        self._edges.pop(automation_id, None)

    def __len__(self) -> int:
        return len(self._edges)

    def _adjacency(
        self, exclude_automation_id: str | None, *, reverse: bool = False
    ) -> dict[str, list[str]]:
        adjacency: dict[str, set[str]] = {}
        for automation_id, (source, target) in self._edges.items():
            if automation_id == exclude_automation_id:
                continue
            if reverse:
                source, target = target, source
            adjacency.setdefault(source, set()).add(target)
        return {node: sorted(nodes) for node, nodes in adjacency.items()}

    def _longest_upstream(
        self, source_id: str, max_nodes: int, exclude_automation_id: str | None
    ) -> tuple[str, ...]:
        """Longest simple chain ending at source (ties: smallest id path), at most max_nodes long."""
        predecessors = self._adjacency(exclude_automation_id, reverse=True)
        best: tuple[str, ...] = (source_id,)
        stack: list[tuple[str, ...]] = [(source_id,)]
        while stack:
            chain = stack.pop()
            if len(chain) > len(best) or (len(chain) == len(best) and chain < best):
                best = chain
            if len(chain) >= max_nodes:
                continue
            for node in predecessors.get(chain[0], []):
                if node not in chain:
                    stack.append((node, *chain))
        return best

    async def find_terminal_path(
        self,
        target_id: str,
        source_id: str,
        max_depth: int,
        *,
        exclude_automation_id: str | None = None,
    ) -> TerminalPath | None:
        successors = self._adjacency(exclude_automation_id)
        cycle = _worst_branch(
            _walk_for_cycle(successors, target_id, source_id, max_depth)
        )
        if cycle is not None:
            depth, path = cycle
            return TerminalPath(path=path, depth=depth, is_cycle=True, upstream=())

        upstream = self._longest_upstream(source_id, max_depth + 1, exclude_automation_id)
        too_deep = _worst_branch(
            _walk_for_depth(successors, target_id, len(upstream) + 1, max_depth)
        )
        if too_deep is None:
            return None
        depth, path = too_deep
        return TerminalPath(path=path, depth=depth, is_cycle=False, upstream=upstream)


def _walk_for_cycle(
    successors: dict[str, list[str]], target_id: str, source_id: str, max_depth: int
) -> Iterator[tuple[int, tuple[str, ...]]]:
    """Yield (depth, path) for every branch from target that reaches source or repeats a node.

    Depth starts at 1 on the target; branches stop after max_depth nodes.
    """
    stack: list[tuple[tuple[str, ...], bool]] = [((target_id,), target_id == source_id)]
    while stack:
        path, is_cycle = stack.pop()
        if is_cycle:
            yield len(path), path
            continue
        if len(path) >= max_depth:
            continue
        for node in successors.get(path[-1], []):
            stack.append(((*path, node), node == source_id or node in path))


def _walk_for_depth(
    successors: dict[str, list[str]], target_id: str, start_depth: int, max_depth: int
) -> Iterator[tuple[int, tuple[str, ...]]]:
    """Yield (depth, path) for every branch from target whose chain grows past max_depth."""
    stack: list[tuple[tuple[str, ...], int]] = [((target_id,), start_depth)]
    while stack:
        path, depth = stack.pop()
        if depth > max_depth:
            yield depth, path
            continue
        for node in successors.get(path[-1], []):
            stack.append(((*path, node), depth + 1))


def _worst_branch(
    branches: Iterable[tuple[int, tuple[str, ...]]],
) -> tuple[int, tuple[str, ...]] | None:
    """Deeper beats shallower, then the smallest id path wins."""
    best: tuple[int, tuple[str, ...]] | None = None
    for depth, path in branches:
        if best is None or depth > best[0] or (depth == best[0] and path < best[1]):
            best = (depth, path)
    return best
