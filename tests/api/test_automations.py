"""Automation endpoint tests. Use cases are replaced via dependency_overrides (no database)."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import DBAPIError

from app.api.v1.dependencies import (
    get_automation_query,
    get_remove_automation_use_case,
    get_upsert_automation_use_case,
)
from app.application.dtos.automation import AutomationResult
from app.application.dtos.condition_tree import ConditionBlockInput, ConditionInput
from app.core.config import get_settings
from app.domain.entities import ActionInstanceEntity
from app.domain.enums import AutomationEvent, ConditionBlockType, ConditionType
from app.domain.exceptions import (
    AutomationConfigException,
    AutomationCycleException,
    AutomationMaxDepthException,
    DuplicateSequentialAutomationException,
    ResourceNotFoundException,
    ValidationException,
)
from app.main import app


def _result(**overrides) -> AutomationResult:
    fields = {
        "id": "auto-1",
        "event": AutomationEvent.ACTION_SUCCEEDED,
        "action_instance_id": "ai-b",
        "source_action_instance_id": "ai-a",
        "config": None,
        "condition_evaluation_timing": None,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return AutomationResult(**fields)


def _path(*ids: str) -> list[ActionInstanceEntity]:
    return [ActionInstanceEntity(id=i, name=i.upper(), stage_id="st1") for i in ids]


class _SerializationFailure(Exception):
    sqlstate = "40001"


@pytest.fixture
def upsert_use_case() -> AsyncMock:
    use_case = AsyncMock()
    use_case.execute.return_value = _result()
    app.dependency_overrides[get_upsert_automation_use_case] = lambda: use_case
    return use_case


@pytest.fixture
def query_use_case() -> AsyncMock:
    query = AsyncMock()
    app.dependency_overrides[get_automation_query] = lambda: query
    return query


@pytest.fixture
def remove_use_case() -> AsyncMock:
    use_case = AsyncMock()
    use_case.execute.return_value = None
    app.dependency_overrides[get_remove_automation_use_case] = lambda: use_case
    return use_case


_SEQUENTIAL_BODY = {
    "event": "actionSucceeded",
    "action_instance_id": "ai-b",
    "source_action_instance_id": "ai-a",
}


async def test_create_automation_returns_201(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    """POST /api/v1/automations passes a command without id and returns the automation."""
    response = await client.post("/api/v1/automations", json=_SEQUENTIAL_BODY)
    assert response.status_code == 201
    data = response.json()
    assert data["id"] == "auto-1"
    assert data["event"] == "actionSucceeded"
    assert data["condition"] is None

    (command,) = upsert_use_case.execute.await_args.args
    assert command.id is None
    assert command.event == AutomationEvent.ACTION_SUCCEEDED
    assert command.source_action_instance_id == "ai-a"


async def test_create_automation_with_condition_tree(
    client: AsyncClient, upsert_use_case: AsyncMock
) -> None:
    """Nested condition items are told apart by kind (or by having items)."""
    upsert_use_case.execute.return_value = _result(
        condition_root_id="blk-1",
        condition=ConditionBlockInput(
            id="blk-1",
            type=ConditionBlockType.AND,
            rank="V",
            items=[
                ConditionInput(id="c-1", type=ConditionType.JSONATA, expression="c1", rank="K"),
                ConditionBlockInput(
                    id="blk-2",
                    type=ConditionBlockType.OR,
                    rank="f",
                    items=[
                        ConditionInput(id="c-2", type=ConditionType.JSONATA, expression="c2", rank="K"),
                    ],
                ),
            ],
        ),
    )
    body = {
        **_SEQUENTIAL_BODY,
        "condition": {
            "type": "AND",
            "items": [
                {"kind": "condition", "type": "jsonata", "expression": "c1"},
                {"type": "OR", "items": [{"expression": "c2"}]},
            ],
        },
    }
    response = await client.post("/api/v1/automations", json=body)
    assert response.status_code == 201

    (command,) = upsert_use_case.execute.await_args.args
    assert isinstance(command.condition, ConditionBlockInput)
    first, second = command.condition.items
    assert isinstance(first, ConditionInput)
    assert isinstance(second, ConditionBlockInput)
    assert second.items[0].type == ConditionType.JSONATA

    data = response.json()
    assert data["condition_root_id"] == "blk-1"
    assert data["condition"]["items"][0]["kind"] == "condition"
    assert data["condition"]["items"][1]["kind"] == "block"
    assert data["condition"]["items"][1]["items"][0]["expression"] == "c2"


async def test_put_passes_automation_id(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    response = await client.put("/api/v1/automations/auto-1", json=_SEQUENTIAL_BODY)
    assert response.status_code == 200
    (command,) = upsert_use_case.execute.await_args.args
    assert command.id == "auto-1"


async def test_cycle_returns_409_with_path(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    upsert_use_case.execute.side_effect = AutomationCycleException(_path("c", "a", "b", "c"))
    response = await client.post("/api/v1/automations", json=_SEQUENTIAL_BODY)
    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "AUTOMATION_CYCLE"
    assert [p["id"] for p in data["details"]["path"]] == ["c", "a", "b", "c"]
    assert "C -> A -> B -> C" in data["message"]


async def test_max_depth_returns_409(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    upsert_use_case.execute.side_effect = AutomationMaxDepthException(_path("a", "b"), 1)
    response = await client.post("/api/v1/automations", json=_SEQUENTIAL_BODY)
    assert response.status_code == 409
    assert response.json()["error"] == "AUTOMATION_MAX_DEPTH_EXCEEDED"
    assert response.json()["details"]["max_depth"] == 1


async def test_duplicate_returns_409(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    upsert_use_case.execute.side_effect = DuplicateSequentialAutomationException(
        "actionSucceeded", "ai-b", "ai-a"
    )
    response = await client.post("/api/v1/automations", json=_SEQUENTIAL_BODY)
    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_SEQUENTIAL_AUTOMATION"


async def test_config_error_returns_422(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    upsert_use_case.execute.side_effect = AutomationConfigException(
        "pubInStageForDuration", {}, [{"loc": "$", "msg": "'duration' is a required property"}]
    )
    response = await client.post(
        "/api/v1/automations",
        json={"event": "pubInStageForDuration", "action_instance_id": "ai-b", "config": {}},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "AUTOMATION_CONFIG_ERROR"


async def test_missing_action_instance_returns_404(
    client: AsyncClient, upsert_use_case: AsyncMock
) -> None:
    upsert_use_case.execute.side_effect = ResourceNotFoundException("action_instance", "ai-b")
    response = await client.post("/api/v1/automations", json=_SEQUENTIAL_BODY)
    assert response.status_code == 404


async def test_serialization_failure_returns_409(
    client: AsyncClient, upsert_use_case: AsyncMock
) -> None:
    """A transaction aborted by a concurrent upsert maps to CONCURRENT_UPDATE."""
    upsert_use_case.execute.side_effect = DBAPIError(
        "INSERT INTO automation ...", {}, _SerializationFailure("could not serialize access")
    )
    response = await client.post("/api/v1/automations", json=_SEQUENTIAL_BODY)
    assert response.status_code == 409
    assert response.json()["error"] == "CONCURRENT_UPDATE"


async def test_unknown_event_is_rejected(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    response = await client.post(
        "/api/v1/automations", json={"event": "pubRenamed", "action_instance_id": "ai-b"}
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"
    upsert_use_case.execute.assert_not_awaited()


async def test_malformed_rank_is_rejected(client: AsyncClient, upsert_use_case: AsyncMock) -> None:
    """Ranks ending with '0' or using other characters are refused."""
    body = {
        **_SEQUENTIAL_BODY,
        "condition": {"type": "AND", "items": [{"expression": "c1", "rank": "a0"}]},
    }
    response = await client.post("/api/v1/automations", json=body)
    assert response.status_code == 422


async def test_list_automations_by_stage(client: AsyncClient, query_use_case: AsyncMock) -> None:
    query_use_case.list_automations.return_value = [_result(), _result(id="auto-2")]
    response = await client.get("/api/v1/automations", params={"stage_id": "st1"})
    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == ["auto-1", "auto-2"]
    query_use_case.list_automations.assert_awaited_once_with(
        action_instance_id=None, stage_id="st1"
    )


async def test_list_automations_without_filter_returns_400(
    client: AsyncClient, query_use_case: AsyncMock
) -> None:
    query_use_case.list_automations.side_effect = ValidationException(
        "Provide exactly one of action_instance_id or stage_id"
    )
    response = await client.get("/api/v1/automations")
    assert response.status_code == 400


async def test_get_automation(client: AsyncClient, query_use_case: AsyncMock) -> None:
    query_use_case.get.return_value = _result()
    response = await client.get("/api/v1/automations/auto-1")
    assert response.status_code == 200
    assert response.json()["source_action_instance_id"] == "ai-a"


async def test_get_missing_automation_returns_404(
    client: AsyncClient, query_use_case: AsyncMock
) -> None:
    query_use_case.get.side_effect = ResourceNotFoundException("automation", "nope")
    response = await client.get("/api/v1/automations/nope")
    assert response.status_code == 404
    assert response.json()["details"]["resource_id"] == "nope"


async def test_delete_automation_returns_204(client: AsyncClient, remove_use_case: AsyncMock) -> None:
    response = await client.delete("/api/v1/automations/auto-1")
    assert response.status_code == 204
    remove_use_case.execute.assert_awaited_once_with("auto-1")


async def test_delete_missing_automation_returns_404(
    client: AsyncClient, remove_use_case: AsyncMock
) -> None:
    remove_use_case.execute.side_effect = ResourceNotFoundException("automation", "nope")
    response = await client.delete("/api/v1/automations/nope")
    assert response.status_code == 404


async def test_write_without_database_returns_503(client: AsyncClient) -> None:
    """With DATABASE_URL unset, write routes answer SERVICE_UNAVAILABLE."""
    if get_settings().sql_configured:
        pytest.skip("DATABASE_URL is set")
    response = await client.post("/api/v1/automations", json=_SEQUENTIAL_BODY)
    assert response.status_code == 503
    assert response.json()["error"] == "SERVICE_UNAVAILABLE"
