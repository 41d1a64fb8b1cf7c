"""Condition tree flattening and reconstruction.

flatten_condition_tree turns a nested AND/OR/NOT tree into block and condition
rows linked by parent_block_id and ordered among siblings by rank, ready for
bulk insertion. reconstruct_condition_tree is its inverse: grouping the rows by
parent and sorting each group by rank yields a tree isomorphic to the input.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Sequence

from app.application.dtos.condition_tree import (
    ConditionBlockInput,
    ConditionInput,
    ConditionItem,
    FlatCondition,
    FlatConditionBlock,
    FlattenedConditionTree,
)
from app.application.services.rank import rank_between
from app.domain.exceptions import ValidationException
from app.shared.utils.generators import generate_cuid

RankGenerator = Callable[[str | None, str | None, int], list[str]]


def flatten_condition_tree(
    root: ConditionBlockInput,
    *,
    id_factory: Callable[[], str] = generate_cuid,
    rank_generator: RankGenerator = rank_between,
) -> FlattenedConditionTree:
    """Flatten a nested condition tree in depth-first pre-order.

    Every node gets a fresh id. An item keeps its own rank when it has one;
    items without one get keys between their ranked neighbours, so sibling
    order after reconstruction is input order. Blocks are emitted before
    their descendants, so inserting `blocks` in order never references a
    parent that is not yet written.

    Raises:
        ValidationException: If given sibling ranks repeat or are out of order.
    """
    root_id = id_factory()
    root_rank = root.rank or rank_generator(None, None, 1)[0]
    blocks = [
        FlatConditionBlock(id=root_id, type=root.type, rank=root_rank, parent_block_id=None)
    ]
    conditions: list[FlatCondition] = []
    _flatten_items(root_id, root.items, blocks, conditions, id_factory, rank_generator)
    return FlattenedConditionTree(root_id=root_id, blocks=blocks, conditions=conditions)


def _sibling_ranks(
    items: Sequence[ConditionItem], rank_generator: RankGenerator
) -> list[str]:
    """Ranks for items in input order.

    Given ranks are kept and must increase strictly. Each run of items without
    a rank gets keys between the kept ranks on either side of it.
    """
    ranks: list[str | None] = [item.rank or None for item in items]
    kept = [r for r in ranks if r is not None]
    for before, after in zip(kept, kept[1:]):
        if before == after:
            raise ValidationException(
                f"Duplicate rank {before!r} among siblings of condition block",
                field="rank",
            )
        if before > after:
            raise ValidationException(
                f"Rank {before!r} must sort before the rank {after!r} of a later sibling",
                field="rank",
            )

    start = 0
    while start < len(ranks):
        if ranks[start] is not None:
            start += 1
            continue
        end = start
        while end < len(ranks) and ranks[end] is None:
            end += 1
        lower = ranks[start - 1] if start > 0 else None
        upper = ranks[end] if end < len(ranks) else None
        try:
            ranks[start:end] = rank_generator(lower, upper, end - start)
        except ValueError as exc:
            raise ValidationException(str(exc), field="rank") from None
        start = end
    return [r for r in ranks if r is not None]


def _flatten_items(
    parent_id: str,
    items: Sequence[ConditionItem],
    blocks: list[FlatConditionBlock],
    conditions: list[FlatCondition],
    id_factory: Callable[[], str],
    rank_generator: RankGenerator,
) -> None:
    if not items:
        return
    for item, rank in zip(items, _sibling_ranks(items, rank_generator)):
        if isinstance(item, ConditionInput):
            conditions.append(
                FlatCondition(
                    id=id_factory(),
                    type=item.type,
                    expression=item.expression,
                    rank=rank,
                    parent_block_id=parent_id,
                )
            )
            continue

        block_id = id_factory()
        blocks.append(
            FlatConditionBlock(id=block_id, type=item.type, rank=rank, parent_block_id=parent_id)
        )
        _flatten_items(block_id, item.items, blocks, conditions, id_factory, rank_generator)


def reconstruct_condition_tree(
    blocks: Sequence[FlatConditionBlock],
    conditions: Sequence[FlatCondition],
) -> ConditionBlockInput | None:
    """Rebuild the nested tree from flat rows; None when there are no blocks.

    Children of each block are ordered by rank. Returned nodes carry their
    stored ids and ranks.

    Raises:
        ValueError: If the rows do not form a single rooted tree.
    """
    if not blocks:
        return None
    roots = [b for b in blocks if b.parent_block_id is None]
    if len(roots) != 1:
        raise ValueError(f"Condition rows must have exactly one root block, found {len(roots)}")

    children: dict[str, list[FlatConditionBlock | FlatCondition]] = defaultdict(list)
    for block in blocks:
        if block.parent_block_id is not None:
            children[block.parent_block_id].append(block)
    for condition in conditions:
        children[condition.parent_block_id].append(condition)

    visited: set[str] = set()

    def build(block: FlatConditionBlock) -> ConditionBlockInput:
        if block.id in visited:
            raise ValueError(f"Condition block {block.id} is reachable twice")
        visited.add(block.id)
        items: list[ConditionItem] = []
        for child in sorted(children.get(block.id, []), key=lambda c: c.rank):
            if isinstance(child, FlatCondition):
                items.append(
                    ConditionInput(
                        type=child.type,
                        expression=child.expression,
                        rank=child.rank,
                        id=child.id,
                    )
                )
            else:
                items.append(build(child))
        return ConditionBlockInput(type=block.type, items=items, rank=block.rank, id=block.id)

    tree = build(roots[0])
    if len(visited) != len(blocks):
        raise ValueError("Condition rows contain blocks not connected to the root")
    return tree
