"""UpsertAutomationUseCase / RemoveAutomationUseCase / GetAutomationUseCase with in-memory repos."""

import random
from dataclasses import replace

import pytest

from app.application.dtos.automation import AutomationResult, UpsertAutomationCommand
from app.application.dtos.condition_tree import (
    ConditionBlockInput,
    ConditionInput,
    FlattenedConditionTree,
)
from app.application.services.trigger_graph import InMemoryTriggerGraph
from app.application.services.trigger_graph_validator import TriggerGraphValidator
from app.application.use_cases.automations import (
    GetAutomationUseCase,
    RemoveAutomationUseCase,
    UpsertAutomationUseCase,
)
from app.domain.entities import ActionInstanceEntity, AutomationEntity
from app.domain.enums import AutomationEvent, ConditionBlockType, ConditionType
from app.domain.exceptions import (
    AutomationConfigException,
    AutomationCycleException,
    AutomationMaxDepthException,
    DuplicateAutomationException,
    DuplicateSequentialAutomationException,
    ResourceNotFoundException,
    ValidationException,
)

SUCCEEDED = AutomationEvent.ACTION_SUCCEEDED


def _seq(target: str, source: str, id: str | None = None) -> UpsertAutomationCommand:
    return UpsertAutomationCommand(
        id=id,
        event=SUCCEEDED,
        action_instance_id=target,
        source_action_instance_id=source,
    )


@pytest.fixture
def automation_env():
    """Use cases wired to an in-memory automation store over action instances A..Z, A1..A12."""

    class MockActionInstanceRepo:
        def __init__(self, ids: set[str]) -> None:
            self.ids = ids

        async def get_many_by_ids(self, action_instance_ids):
            return {
                i: ActionInstanceEntity(id=i, name=f"Action {i}", stage_id="stage-1")
                for i in action_instance_ids
                if i in self.ids
            }

    class MockAutomationRepo:
        """Enforces the two uniqueness rules; records every write."""

        def __init__(self) -> None:
            self.rows: dict[str, AutomationResult] = {}
            self.trees: dict[str, FlattenedConditionTree] = {}
            self.writes: list[tuple[str, str]] = []

        async def find_terminal_path(self, target_id, source_id, max_depth, *, exclude_automation_id=None):
            graph = InMemoryTriggerGraph.from_automations(
                AutomationEntity(
                    id=r.id,
                    event=r.event,
                    action_instance_id=r.action_instance_id,
                    source_action_instance_id=r.source_action_instance_id,
                )
                for r in self.rows.values()
            )
            return await graph.find_terminal_path(
                target_id, source_id, max_depth, exclude_automation_id=exclude_automation_id
            )

        async def upsert_automation(
            self,
            automation_id,
            event,
            action_instance_id,
            source_action_instance_id,
            config,
            condition_evaluation_timing,
        ):
            for other in self.rows.values():
                if other.id == automation_id or other.event != event:
                    continue
                if other.action_instance_id != action_instance_id:
                    continue
                if source_action_instance_id and other.source_action_instance_id == source_action_instance_id:
                    raise DuplicateSequentialAutomationException(
                        event.value, action_instance_id, source_action_instance_id
                    )
                if not source_action_instance_id and not other.source_action_instance_id:
                    raise DuplicateAutomationException(event.value, action_instance_id)
            self.writes.append(("upsert", automation_id))
            row = AutomationResult(
                id=automation_id,
                event=event,
                action_instance_id=action_instance_id,
                source_action_instance_id=source_action_instance_id,
                config=config,
                condition_evaluation_timing=condition_evaluation_timing,
            )
            self.rows[automation_id] = row
            return row

        async def delete_condition_tree(self, automation_id):
            self.writes.append(("delete_tree", automation_id))
            self.trees.pop(automation_id, None)

        async def insert_condition_tree(self, automation_id, tree):
            self.writes.append(("insert_tree", automation_id))
            self.trees[automation_id] = tree

        async def get_by_id(self, automation_id):
            return self.rows.get(automation_id)

        async def list_by_action_instance(self, action_instance_id):
            return [r for r in self.rows.values() if r.action_instance_id == action_instance_id]

        async def list_by_stage(self, stage_id):
            return list(self.rows.values()) if stage_id == "stage-1" else []

        async def get_condition_trees(self, automation_ids):
            return {i: self.trees[i] for i in automation_ids if i in self.trees}

        async def delete_automation(self, automation_id):
            self.trees.pop(automation_id, None)
            return self.rows.pop(automation_id, None) is not None

    class Env:
        def __init__(self, max_stack_depth: int) -> None:
            ids = {chr(c) for c in range(ord("A"), ord("Z") + 1)}
            ids |= {f"A{i}" for i in range(1, 13)}
            self.action_instances = MockActionInstanceRepo(ids)
            self.repo = MockAutomationRepo()
            self.upsert = UpsertAutomationUseCase(
                automation_repo=self.repo,
                action_instance_repo=self.action_instances,
                trigger_graph_validator=TriggerGraphValidator(self.repo, self.action_instances),
                max_stack_depth=max_stack_depth,
            )
            self.remove = RemoveAutomationUseCase(automation_repo=self.repo)
            self.query = GetAutomationUseCase(automation_repo=self.repo)

    def make(max_stack_depth: int = 10) -> Env:
        return Env(max_stack_depth)

    return make


async def test_create_sequential_automation(automation_env) -> None:
    """A first sequential automation gets a generated id and no condition tree."""
    env = automation_env()
    result = await env.upsert.execute(_seq("B", "A"))
    assert result.id
    assert result.event == SUCCEEDED
    assert result.condition is None
    assert env.repo.writes == [("upsert", result.id), ("delete_tree", result.id)]


async def test_cycle_is_rejected_before_any_write(automation_env) -> None:
    """A->B, B->C exist; C->A raises AutomationCycleException and writes nothing."""
    env = automation_env()
    await env.upsert.execute(_seq("B", "A"))
    await env.upsert.execute(_seq("C", "B"))
    env.repo.writes.clear()

    with pytest.raises(AutomationCycleException) as exc_info:
        await env.upsert.execute(_seq("A", "C"))
    assert [p.id for p in exc_info.value.path] == ["C", "A", "B", "C"]
    assert env.repo.writes == []
    assert len(env.repo.rows) == 2


async def test_max_depth_is_rejected(automation_env) -> None:
    """A chain of ten action instances cannot be extended."""
    env = automation_env()
    for i in range(1, 10):
        await env.upsert.execute(_seq(f"A{i + 1}", f"A{i}"))
    with pytest.raises(AutomationMaxDepthException) as exc_info:
        await env.upsert.execute(_seq("A11", "A10"))
    assert exc_info.value.max_depth == 10
    assert len(exc_info.value.path) == 11


async def test_max_stack_depth_is_configurable(automation_env) -> None:
    env = automation_env(max_stack_depth=2)
    await env.upsert.execute(_seq("B", "A"))
    with pytest.raises(AutomationMaxDepthException):
        await env.upsert.execute(_seq("C", "B"))


async def test_duplicate_sequential_automation_propagates(automation_env) -> None:
    """Same (event, source, target) twice raises the specific duplicate error."""
    env = automation_env()
    await env.upsert.execute(_seq("B", "A"))
    with pytest.raises(DuplicateSequentialAutomationException) as exc_info:
        await env.upsert.execute(_seq("B", "A"))
    assert exc_info.value.source_action_instance_id == "A"


async def test_same_edge_with_other_event_is_allowed(automation_env) -> None:
    """actionFailed A->B next to actionSucceeded A->B is not a duplicate or a cycle."""
    env = automation_env()
    await env.upsert.execute(_seq("B", "A"))
    result = await env.upsert.execute(
        UpsertAutomationCommand(
            event=AutomationEvent.ACTION_FAILED,
            action_instance_id="B",
            source_action_instance_id="A",
        )
    )
    assert result.event == AutomationEvent.ACTION_FAILED


async def test_duplicate_non_sequential_automation(automation_env) -> None:
    env = automation_env()
    command = UpsertAutomationCommand(event=AutomationEvent.PUB_ENTERED_STAGE, action_instance_id="A")
    await env.upsert.execute(command)
    with pytest.raises(DuplicateAutomationException):
        await env.upsert.execute(command)


async def test_non_sequential_automation_skips_graph_check(automation_env) -> None:
    """A webhook automation on an action instance inside a chain is unaffected by depth."""
    env = automation_env(max_stack_depth=2)
    await env.upsert.execute(_seq("B", "A"))
    result = await env.upsert.execute(
        UpsertAutomationCommand(event=AutomationEvent.WEBHOOK, action_instance_id="B")
    )
    assert result.source_action_instance_id is None


async def test_removing_non_sequential_automation_keeps_graph(automation_env) -> None:
    """Removing a non-sequential automation does not change the trigger graph."""
    env = automation_env()
    await env.upsert.execute(_seq("B", "A"))
    await env.upsert.execute(_seq("C", "B"))
    webhook = await env.upsert.execute(
        UpsertAutomationCommand(event=AutomationEvent.WEBHOOK, action_instance_id="A")
    )
    await env.remove.execute(webhook.id)
    with pytest.raises(AutomationCycleException):
        await env.upsert.execute(_seq("A", "C"))


async def test_sequential_event_requires_source(automation_env) -> None:
    env = automation_env()
    with pytest.raises(ValidationException) as exc_info:
        await env.upsert.execute(UpsertAutomationCommand(event=SUCCEEDED, action_instance_id="B"))
    assert exc_info.value.details == {"field": "source_action_instance_id"}


async def test_non_sequential_event_rejects_source(automation_env) -> None:
    env = automation_env()
    with pytest.raises(ValidationException):
        await env.upsert.execute(
            UpsertAutomationCommand(
                event=AutomationEvent.PUB_LEFT_STAGE,
                action_instance_id="B",
                source_action_instance_id="A",
            )
        )


async def test_invalid_config_is_rejected(automation_env) -> None:
    env = automation_env()
    with pytest.raises(AutomationConfigException):
        await env.upsert.execute(
            UpsertAutomationCommand(
                event=AutomationEvent.PUB_IN_STAGE_FOR_DURATION,
                action_instance_id="A",
                config={"duration": -1, "interval": "day"},
            )
        )
    assert env.repo.writes == []


async def test_missing_action_instance_raises_not_found(automation_env) -> None:
    env = automation_env()
    with pytest.raises(ResourceNotFoundException) as exc_info:
        await env.upsert.execute(_seq("B", "nope"))
    assert exc_info.value.details["resource_id"] == "nope"


async def test_upsert_stores_condition_tree(automation_env) -> None:
    """AND(c1, OR(c2, c3)) is flattened, stored and returned as a tree."""
    env = automation_env()
    condition = ConditionBlockInput(
        type=ConditionBlockType.AND,
        items=[
            ConditionInput(type=ConditionType.JSONATA, expression="c1"),
            ConditionBlockInput(
                type=ConditionBlockType.OR,
                items=[
                    ConditionInput(type=ConditionType.JSONATA, expression="c2"),
                    ConditionInput(type=ConditionType.JSONATA, expression="c3"),
                ],
            ),
        ],
    )
    result = await env.upsert.execute(
        UpsertAutomationCommand(
            event=AutomationEvent.PUB_ENTERED_STAGE,
            action_instance_id="A",
            condition=condition,
        )
    )
    tree = env.repo.trees[result.id]
    assert (len(tree.blocks), len(tree.conditions)) == (2, 3)
    assert result.condition_root_id == tree.root_id
    assert result.condition is not None
    assert [type(i) for i in result.condition.items] == [ConditionInput, ConditionBlockInput]

    fetched = await env.query.get(result.id)
    assert fetched.condition == result.condition


async def test_replace_rebuilds_condition_tree(automation_env) -> None:
    """Upserting an existing id replaces the row and drops the old condition tree."""
    env = automation_env()
    first = await env.upsert.execute(
        UpsertAutomationCommand(
            event=AutomationEvent.PUB_ENTERED_STAGE,
            action_instance_id="A",
            condition=ConditionBlockInput(
                type=ConditionBlockType.AND,
                items=[ConditionInput(type=ConditionType.JSONATA, expression="old")],
            ),
        )
    )
    second = await env.upsert.execute(
        UpsertAutomationCommand(
            id=first.id,
            event=AutomationEvent.PUB_LEFT_STAGE,
            action_instance_id="A",
        )
    )
    assert second.id == first.id
    assert second.event == AutomationEvent.PUB_LEFT_STAGE
    assert first.id not in env.repo.trees
    assert (await env.query.get(first.id)).condition is None


async def test_editing_an_edge_ignores_its_old_position(automation_env) -> None:
    """Re-pointing A->B to C->A does not clash with the edge it replaces."""
    env = automation_env()
    first = await env.upsert.execute(_seq("B", "A"))
    await env.upsert.execute(_seq("C", "B"))
    moved = await env.upsert.execute(_seq("A", "C", id=first.id))
    assert moved.id == first.id
    assert env.repo.rows[first.id].source_action_instance_id == "C"


async def test_remove_missing_automation_raises(automation_env) -> None:
    env = automation_env()
    with pytest.raises(ResourceNotFoundException):
        await env.remove.execute("missing")


async def test_remove_breaks_cycle_path(automation_env) -> None:
    """After removing B->C, C->A is accepted."""
    env = automation_env()
    await env.upsert.execute(_seq("B", "A"))
    b_to_c = await env.upsert.execute(_seq("C", "B"))
    await env.remove.execute(b_to_c.id)
    result = await env.upsert.execute(_seq("A", "C"))
    assert result.source_action_instance_id == "C"


async def test_list_requires_exactly_one_filter(automation_env) -> None:
    env = automation_env()
    with pytest.raises(ValidationException):
        await env.query.list_automations()
    with pytest.raises(ValidationException):
        await env.query.list_automations(action_instance_id="A", stage_id="stage-1")


async def test_list_by_action_instance_and_stage(automation_env) -> None:
    env = automation_env()
    a = await env.upsert.execute(_seq("B", "A"))
    await env.upsert.execute(_seq("C", "B"))
    by_target = await env.query.list_automations(action_instance_id="B")
    assert [r.id for r in by_target] == [a.id]
    assert len(await env.query.list_automations(stage_id="stage-1")) == 2


async def test_get_missing_automation_raises(automation_env) -> None:
    env = automation_env()
    with pytest.raises(ResourceNotFoundException):
        await env.query.get("missing")


def test_command_is_immutable() -> None:
    command = _seq("B", "A")
    assert replace(command, id="x").id == "x"
    with pytest.raises(AttributeError):
        command.id = "y"  # type: ignore[misc]


def _reaches(edges: set[tuple[str, str]], start: str, goal: str) -> bool:
    """Whether goal is reachable from start (a node reaches itself)."""
    seen, stack = {start}, [start]
    while stack:
        node = stack.pop()
        if node == goal:
            return True
        for source, target in edges:
            if source == node and target not in seen:
                seen.add(target)
                stack.append(target)
    return False


def _longest_chain(edges: set[tuple[str, str]]) -> int:
    """Node count of the longest chain in an acyclic edge set."""
    successors: dict[str, list[str]] = {}
    for source, target in edges:
        successors.setdefault(source, []).append(target)

    def longest_from(node: str) -> int:
        return 1 + max((longest_from(n) for n in successors.get(node, [])), default=0)

    return max((longest_from(node) for node in successors), default=0)


@pytest.mark.parametrize("seed", range(8))
async def test_accepted_edges_keep_graph_acyclic_and_shallow(automation_env, seed: int) -> None:
    """Random sequential upserts: every accepted graph is acyclic and within the
    depth limit, and every rejection names the right reason."""
    max_depth = 4
    env = automation_env(max_stack_depth=max_depth)
    rng = random.Random(seed)
    nodes = list("ABCDEFGH")
    accepted: set[tuple[str, str]] = set()

    for _ in range(60):
        source, target = rng.choice(nodes), rng.choice(nodes)
        if (source, target) in accepted:
            continue
        try:
            await env.upsert.execute(_seq(target, source))
        except AutomationCycleException:
            assert _reaches(accepted, target, source)
        except AutomationMaxDepthException as exc:
            assert not _reaches(accepted, target, source)
            assert _longest_chain(accepted | {(source, target)}) > max_depth
            assert len(exc.path) > max_depth
        else:
            assert not _reaches(accepted, target, source)
            accepted.add((source, target))
            assert _longest_chain(accepted) <= max_depth

    assert accepted
