"""Workflow router - definitions, manual runs and approvals"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    TRIGGER_TYPES,
    TRIGGER_VARIABLES,
    ExecuteWorkflowRequest,
    ExecutionResponse,
    WorkflowCreate,
    WorkflowResponse,
    WorkflowUpdate,
)
from .service import WorkflowService

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def get_workflow_service(db: Session = Depends(get_db)) -> WorkflowService:
    return WorkflowService(db)


@router.get("", response_model=list[WorkflowResponse])
async def get_workflows(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return [WorkflowResponse.from_model(w) for w in service.get_workflows(current_user, status)]


@router.get("/variables")
async def get_trigger_variables(
    triggerType: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
):
    """Placeholders available to nodes for each trigger type"""
    if triggerType is None:
        return {"triggerTypes": list(TRIGGER_TYPES), "variables": TRIGGER_VARIABLES}
    if triggerType not in TRIGGER_VARIABLES:
        raise HTTPException(status_code=400, detail="Unknown trigger type")
    return {"triggerType": triggerType, "variables": TRIGGER_VARIABLES[triggerType]}


@router.get("/approvals/pending", response_model=list[ExecutionResponse])
async def get_pending_approvals(
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Executions waiting for the current user's decision"""
    return [ExecutionResponse.from_model(e) for e in service.get_pending_approvals(current_user)]


@router.post("/executions/{execution_id}/approve", response_model=ExecutionResponse)
async def approve_execution(
    execution_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return ExecutionResponse.from_model(service.approve(execution_id, current_user))


@router.post("/executions/{execution_id}/reject", response_model=ExecutionResponse)
async def reject_execution(
    execution_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return ExecutionResponse.from_model(service.reject(execution_id, current_user))


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    workflow_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return WorkflowResponse.from_model(service.get_workflow(workflow_id, current_user))


@router.post("", response_model=WorkflowResponse)
async def create_workflow(
    data: WorkflowCreate,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Create a workflow; connections reference nodes by their index in the request"""
    return WorkflowResponse.from_model(service.create_workflow(data, current_user))


@router.patch("/{workflow_id}", response_model=WorkflowResponse)
async def update_workflow(
    workflow_id: int,
    data: WorkflowUpdate,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return WorkflowResponse.from_model(service.update_workflow(workflow_id, data, current_user))


@router.delete("/{workflow_id}")
async def delete_workflow(
    workflow_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return service.delete_workflow(workflow_id, current_user)


@router.post("/{workflow_id}/activate", response_model=WorkflowResponse)
async def activate_workflow(
    workflow_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return WorkflowResponse.from_model(service.set_status(workflow_id, current_user, active=True))


@router.post("/{workflow_id}/deactivate", response_model=WorkflowResponse)
async def deactivate_workflow(
    workflow_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return WorkflowResponse.from_model(service.set_status(workflow_id, current_user, active=False))


@router.get("/{workflow_id}/executions", response_model=list[ExecutionResponse])
async def get_executions(
    workflow_id: int,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Latest executions of a workflow"""
    return [ExecutionResponse.from_model(e) for e in service.get_executions(workflow_id, current_user)]


@router.post("/{workflow_id}/execute", response_model=ExecutionResponse)
async def execute_workflow(
    workflow_id: int,
    data: Optional[ExecuteWorkflowRequest] = None,
    current_user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Run an active workflow now with optional trigger data"""
    trigger_data = data.triggerData if data else {}
    return ExecutionResponse.from_model(service.execute(workflow_id, current_user, trigger_data))
