"""Workflow schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

TRIGGER_TYPES = (
    "manual",
    "client_created",
    "client_updated",
    "piano_created",
    "service_created",
    "appointment_created",
    "appointment_completed",
    "invoice_created",
    "invoice_paid",
)

NODE_TYPES = ("trigger", "condition", "action", "delay", "approval")

CONNECTION_TYPES = ("true", "false", "approved", "rejected")

ACTION_TYPES = ("send_email", "create_reminder", "create_appointment", "update_status")

# Placeholders offered to the workflow editor, per trigger
_CLIENT_VARS = ["client.id", "client.name", "client.email", "client.phone", "client.city", "client.clientType"]
TRIGGER_VARIABLES = {
    "manual": ["user.name", "user.email", "workflow.name"],
    "client_created": _CLIENT_VARS,
    "client_updated": _CLIENT_VARS,
    "piano_created": _CLIENT_VARS + ["piano.id", "piano.brand", "piano.model", "piano.serialNumber"],
    "service_created": _CLIENT_VARS
    + ["piano.brand", "piano.model", "service.id", "service.serviceType", "service.date", "service.cost"],
    "appointment_created": _CLIENT_VARS + ["appointment.id", "appointment.title", "appointment.date"],
    "appointment_completed": _CLIENT_VARS + ["appointment.id", "appointment.title", "appointment.date"],
    "invoice_created": _CLIENT_VARS + ["invoice.id", "invoice.invoiceNumber", "invoice.total", "invoice.dueDate"],
    "invoice_paid": _CLIENT_VARS + ["invoice.id", "invoice.invoiceNumber", "invoice.total", "invoice.paidAt"],
}


class NodeInput(BaseModel):
    nodeType: str
    nodeConfig: dict[str, Any] = Field(default_factory=dict)
    positionX: float = 0
    positionY: float = 0

    @field_validator("nodeType")
    @classmethod
    def validate_node_type(cls, v):
        if v not in NODE_TYPES:
            raise ValueError(f"nodeType must be one of: {', '.join(NODE_TYPES)}")
        return v


class ConnectionInput(BaseModel):
    """Edge between two nodes, referenced by their index in ``nodes``"""

    sourceIndex: int = Field(..., ge=0)
    targetIndex: int = Field(..., ge=0)
    connectionType: Optional[str] = None

    @field_validator("connectionType")
    @classmethod
    def validate_connection_type(cls, v):
        if v is not None and v not in CONNECTION_TYPES:
            raise ValueError(f"connectionType must be one of: {', '.join(CONNECTION_TYPES)}")
        return v


def _check_trigger(v):
    if v is not None and v not in TRIGGER_TYPES:
        raise ValueError(f"triggerType must be one of: {', '.join(TRIGGER_TYPES)}")
    return v


class WorkflowCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    triggerType: str
    triggerConfig: Optional[dict[str, Any]] = None
    nodes: list[NodeInput] = Field(default_factory=list)
    connections: list[ConnectionInput] = Field(default_factory=list)

    @field_validator("triggerType")
    @classmethod
    def validate_trigger(cls, v):
        return _check_trigger(v)


class WorkflowUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    triggerType: Optional[str] = None
    triggerConfig: Optional[dict[str, Any]] = None
    nodes: Optional[list[NodeInput]] = None
    connections: Optional[list[ConnectionInput]] = None

    @field_validator("triggerType")
    @classmethod
    def validate_trigger(cls, v):
        return _check_trigger(v)


class ExecuteWorkflowRequest(BaseModel):
    triggerData: dict[str, Any] = Field(default_factory=dict)


class NodeResponse(BaseModel):
    id: int
    nodeType: str
    nodeConfig: Optional[dict[str, Any]]
    positionX: Optional[float]
    positionY: Optional[float]


class ConnectionResponse(BaseModel):
    id: int
    sourceNodeId: int
    targetNodeId: int
    connectionType: Optional[str]


class WorkflowResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    triggerType: str
    triggerConfig: Optional[dict[str, Any]]
    status: str
    nodes: list[NodeResponse]
    connections: list[ConnectionResponse]
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, workflow) -> "WorkflowResponse":
        return cls(
            id=workflow.id,
            name=workflow.name,
            description=workflow.description,
            triggerType=workflow.trigger_type,
            triggerConfig=workflow.trigger_config,
            status=workflow.status,
            nodes=[
                NodeResponse(
                    id=n.id,
                    nodeType=n.node_type,
                    nodeConfig=n.node_config,
                    positionX=n.position_x,
                    positionY=n.position_y,
                )
                for n in workflow.nodes
            ],
            connections=[
                ConnectionResponse(
                    id=c.id,
                    sourceNodeId=c.source_node_id,
                    targetNodeId=c.target_node_id,
                    connectionType=c.connection_type,
                )
                for c in workflow.connections
            ],
            createdAt=workflow.created_at,
            updatedAt=workflow.updated_at,
        )


class ExecutionResponse(BaseModel):
    id: int
    workflowId: int
    workflowName: Optional[str] = None
    status: str
    triggerData: Optional[dict[str, Any]]
    variables: Optional[dict[str, Any]]
    currentNodeId: Optional[int]
    pendingApprovalData: Optional[dict[str, Any]]
    approvalDecision: Optional[str]
    pausedAt: Optional[datetime]
    resumeAt: Optional[datetime]
    error: Optional[str]
    startedAt: Optional[datetime]
    completedAt: Optional[datetime]

    @classmethod
    def from_model(cls, execution) -> "ExecutionResponse":
        return cls(
            id=execution.id,
            workflowId=execution.workflow_id,
            workflowName=execution.workflow.name if execution.workflow else None,
            status=execution.status,
            triggerData=execution.trigger_data,
            variables=execution.variables,
            currentNodeId=execution.current_node_id,
            pendingApprovalData=execution.pending_approval_data,
            approvalDecision=execution.approval_decision,
            pausedAt=execution.paused_at,
            resumeAt=execution.resume_at,
            error=execution.error,
            startedAt=execution.started_at,
            completedAt=execution.completed_at,
        )
