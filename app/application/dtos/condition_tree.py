"""DTOs for condition trees: nested input form and flattened relational rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from app.domain.enums import ConditionBlockType, ConditionType


@dataclass(frozen=True)
class ConditionInput:
    """Leaf predicate in a nested condition tree."""

    type: ConditionType
    expression: str
    rank: str | None = None
    id: str | None = None
    kind: Literal["condition"] = "condition"


@dataclass(frozen=True)
class ConditionBlockInput:
    """Boolean block (AND/OR/NOT) holding ordered child items."""

    type: ConditionBlockType
    items: list[ConditionItem] = field(default_factory=list)
    rank: str | None = None
    id: str | None = None
    kind: Literal["block"] = "block"


ConditionItem = ConditionInput | ConditionBlockInput


@dataclass(frozen=True)
class FlatConditionBlock:
    """Block row. parent_block_id is None only for the tree root."""

    id: str
    type: ConditionBlockType
    rank: str
    parent_block_id: str | None


@dataclass(frozen=True)
class FlatCondition:
    """Condition row. Always attached to a parent block."""

    id: str
    type: ConditionType
    expression: str
    rank: str
    parent_block_id: str


@dataclass(frozen=True)
class FlattenedConditionTree:
    """Rows ready for bulk insertion; blocks are in pre-order (parents first)."""

    root_id: str
    blocks: list[FlatConditionBlock]
    conditions: list[FlatCondition]
