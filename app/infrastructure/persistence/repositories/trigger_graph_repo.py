"""Trigger graph repository (implements ITriggerPathFinder).

One round trip. A recursive query first walks forwards from the candidate
target looking for a branch that reaches the source or repeats a node. Only
when there is none does it walk backwards from the source to find the
longest existing chain ending there, then forwards from the target again,
stopping each branch as soon as the combined chain is too deep.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.trigger_graph import TerminalPath
from app.domain.enums import SEQUENTIAL_AUTOMATION_EVENTS

_SEQUENTIAL_EVENTS = sorted(e.value for e in SEQUENTIAL_AUTOMATION_EVENTS)

_TERMINAL_PATH_SQL = text("""
    WITH RECURSIVE cycle_walk(node, path, is_cycle) AS (
        SELECT CAST(:target_id AS varchar),
               ARRAY[CAST(:target_id AS varchar)],
               CAST(:target_id AS varchar) = CAST(:source_id AS varchar)
        UNION ALL
        SELECT a.action_instance_id,
               array_append(c.path, a.action_instance_id),
               a.action_instance_id = CAST(:source_id AS varchar)
                   OR a.action_instance_id = ANY(c.path)
        FROM cycle_walk c
        JOIN automation a ON a.source_action_instance_id = c.node
        WHERE a.event = ANY(CAST(:events AS varchar[]))
          AND a.id IS DISTINCT FROM CAST(:exclude_id AS varchar)
          AND NOT c.is_cycle
          AND cardinality(c.path) < CAST(:max_depth AS integer)
    ),
    has_cycle AS (
        SELECT EXISTS (SELECT 1 FROM cycle_walk WHERE is_cycle) AS found
    ),
    upstream(node, path) AS (
        SELECT CAST(:source_id AS varchar), ARRAY[CAST(:source_id AS varchar)]
        FROM has_cycle
        WHERE NOT has_cycle.found
        UNION ALL
        SELECT a.source_action_instance_id,
               array_prepend(a.source_action_instance_id, u.path)
        FROM upstream u
        JOIN automation a ON a.action_instance_id = u.node
        WHERE a.event = ANY(CAST(:events AS varchar[]))
          AND a.source_action_instance_id IS NOT NULL
          AND a.id IS DISTINCT FROM CAST(:exclude_id AS varchar)
          AND cardinality(u.path) <= CAST(:max_depth AS integer)
          AND NOT a.source_action_instance_id = ANY(u.path)
    ),
    longest_upstream AS (
        SELECT path
        FROM upstream
        ORDER BY cardinality(path) DESC, path COLLATE "C" ASC
        LIMIT 1
    ),
    depth_walk(node, path, depth) AS (
        SELECT CAST(:target_id AS varchar),
               ARRAY[CAST(:target_id AS varchar)],
               cardinality(lu.path) + 1
        FROM longest_upstream lu
        UNION ALL
        SELECT a.action_instance_id,
               array_append(d.path, a.action_instance_id),
               d.depth + 1
        FROM depth_walk d
        JOIN automation a ON a.source_action_instance_id = d.node
        WHERE a.event = ANY(CAST(:events AS varchar[]))
          AND a.id IS DISTINCT FROM CAST(:exclude_id AS varchar)
          AND d.depth <= CAST(:max_depth AS integer)
    )
    SELECT t.path, t.depth, t.is_cycle, t.upstream
    FROM (
        SELECT c.path,
               cardinality(c.path) AS depth,
               TRUE AS is_cycle,
               CAST(ARRAY[] AS varchar[]) AS upstream
        FROM cycle_walk c
        WHERE c.is_cycle
        UNION ALL
        SELECT d.path, d.depth, FALSE, lu.path
        FROM depth_walk d
        CROSS JOIN longest_upstream lu
        WHERE d.depth > CAST(:max_depth AS integer)
    ) t
    ORDER BY t.is_cycle DESC, t.depth DESC, t.path COLLATE "C" ASC
    LIMIT 1
""")


class TriggerGraphRepository:
    """Bounded-depth reachability over the automation table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_terminal_path(
        self,
        target_id: str,
        source_id: str,
        max_depth: int,
        *,
        exclude_automation_id: str | None = None,
    ) -> TerminalPath | None:
        """Return the worst terminal branch for candidate edge source -> target, or None."""
        r = await self.db.execute(
            _TERMINAL_PATH_SQL,
            {
                "target_id": target_id,
                "source_id": source_id,
                "max_depth": max_depth,
                "exclude_id": exclude_automation_id,
                "events": _SEQUENTIAL_EVENTS,
            },
        )
        row = r.mappings().first()
        if row is None:
            return None
        return TerminalPath(
            path=tuple(row["path"]),
            depth=row["depth"],
            is_cycle=row["is_cycle"],
            upstream=tuple(row["upstream"]),
        )
