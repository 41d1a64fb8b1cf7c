"""Automation API: thin routes delegating to the automation use cases."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from app.api.v1.dependencies import (
    get_automation_query,
    get_remove_automation_use_case,
    get_upsert_automation_use_case,
)
from app.application.use_cases.automations import (
    GetAutomationUseCase,
    RemoveAutomationUseCase,
    UpsertAutomationUseCase,
)
from app.schemas.automation import AutomationResponse, AutomationUpsertRequest

router = APIRouter()

_CONFLICT_RESPONSES = {
    409: {"description": "Would create a cycle, exceed the max chain depth, or duplicate an automation"},
    422: {"description": "Config does not match the event's schema"},
}


@router.post(
    "",
    response_model=AutomationResponse,
    status_code=201,
    responses=_CONFLICT_RESPONSES,
)
async def create_automation(
    body: AutomationUpsertRequest,
    use_case: Annotated[UpsertAutomationUseCase, Depends(get_upsert_automation_use_case)],
):
    """Create an automation. Sequential events are checked against the trigger graph."""
    automation = await use_case.execute(body.to_command())
    return AutomationResponse.model_validate(automation)


@router.put(
    "/{automation_id}",
    response_model=AutomationResponse,
    responses=_CONFLICT_RESPONSES,
)
async def upsert_automation(
    automation_id: str,
    body: AutomationUpsertRequest,
    use_case: Annotated[UpsertAutomationUseCase, Depends(get_upsert_automation_use_case)],
):
    """Create or replace the automation with this id (condition tree is rebuilt)."""
    automation = await use_case.execute(body.to_command(automation_id))
    return AutomationResponse.model_validate(automation)


@router.get("", response_model=list[AutomationResponse])
async def list_automations(
    query: Annotated[GetAutomationUseCase, Depends(get_automation_query)],
    action_instance_id: str | None = Query(None, min_length=1),
    stage_id: str | None = Query(None, min_length=1),
):
    """List automations running an action instance, or any action instance of a stage."""
    automations = await query.list_automations(
        action_instance_id=action_instance_id, stage_id=stage_id
    )
    return [AutomationResponse.model_validate(a) for a in automations]


@router.get("/{automation_id}", response_model=AutomationResponse)
async def get_automation(
    automation_id: str,
    query: Annotated[GetAutomationUseCase, Depends(get_automation_query)],
):
    """Get automation by id with its condition tree."""
    automation = await query.get(automation_id)
    return AutomationResponse.model_validate(automation)


@router.delete("/{automation_id}", status_code=204)
async def delete_automation(
    automation_id: str,
    use_case: Annotated[RemoveAutomationUseCase, Depends(get_remove_automation_use_case)],
) -> Response:
    """Delete automation by id; its condition tree is removed with it."""
    await use_case.execute(automation_id)
    return Response(status_code=204)
