"""Workflow service - definitions, executions and approvals"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload

from ...models import User
from ...models_workflow import Workflow, WorkflowConnection, WorkflowExecution, WorkflowNode
from .engine import PARKED_STATUSES, WorkflowEngine
from .schemas import ConnectionInput, NodeInput, WorkflowCreate, WorkflowUpdate

logger = logging.getLogger(__name__)

EXECUTION_HISTORY_LIMIT = 50


class WorkflowService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------ definitions

    def get_workflows(self, user: User, status: Optional[str] = None) -> list[Workflow]:
        query = self.db.query(Workflow).filter(Workflow.user_id == user.id)
        if status:
            query = query.filter(Workflow.status == status)
        return query.order_by(Workflow.created_at.desc(), Workflow.id.desc()).all()

    def get_workflow(self, workflow_id: int, user: User) -> Workflow:
        workflow = (
            self.db.query(Workflow).filter(Workflow.id == workflow_id, Workflow.user_id == user.id).first()
        )
        if not workflow:
            raise HTTPException(status_code=404, detail="Workflow not found")
        return workflow

    def _replace_graph(
        self, workflow: Workflow, nodes: list[NodeInput], connections: list[ConnectionInput]
    ) -> None:
        """Swap the workflow's nodes and connections; connection indexes refer to ``nodes``"""
        for index, conn in enumerate(connections):
            if conn.sourceIndex >= len(nodes) or conn.targetIndex >= len(nodes):
                raise HTTPException(status_code=400, detail=f"Connection {index} refers to an unknown node")
            if conn.sourceIndex == conn.targetIndex:
                raise HTTPException(status_code=400, detail=f"Connection {index} links a node to itself")

        workflow.connections.clear()
        workflow.nodes.clear()
        self.db.flush()

        created = []
        for node in nodes:
            db_node = WorkflowNode(
                node_type=node.nodeType,
                node_config=node.nodeConfig,
                position_x=node.positionX,
                position_y=node.positionY,
            )
            workflow.nodes.append(db_node)
            created.append(db_node)
        self.db.flush()

        for conn in connections:
            workflow.connections.append(
                WorkflowConnection(
                    source_node_id=created[conn.sourceIndex].id,
                    target_node_id=created[conn.targetIndex].id,
                    connection_type=conn.connectionType,
                )
            )

    def create_workflow(self, data: WorkflowCreate, user: User) -> Workflow:
        workflow = Workflow(
            user_id=user.id,
            name=data.name.strip(),
            description=data.description,
            trigger_type=data.triggerType,
            trigger_config=data.triggerConfig,
            status="inactive",
        )
        self.db.add(workflow)
        self.db.flush()
        self._replace_graph(workflow, data.nodes, data.connections)
        self.db.commit()
        self.db.refresh(workflow)
        logger.info(f"✅ Workflow {workflow.id} created for user {user.id}")
        return workflow

    def update_workflow(self, workflow_id: int, data: WorkflowUpdate, user: User) -> Workflow:
        workflow = self.get_workflow(workflow_id, user)
        updates = data.model_dump(exclude_unset=True)

        columns = {"name": "name", "description": "description", "triggerType": "trigger_type", "triggerConfig": "trigger_config"}
        for field, column in columns.items():
            if field in updates:
                setattr(workflow, column, updates[field])

        if data.nodes is not None or data.connections is not None:
            if data.nodes is None:
                raise HTTPException(status_code=400, detail="Connections can only be replaced together with nodes")
            parked = (
                self.db.query(WorkflowExecution)
                .filter(WorkflowExecution.workflow_id == workflow.id, WorkflowExecution.status.in_(PARKED_STATUSES))
                .count()
            )
            if parked:
                raise HTTPException(
                    status_code=409,
                    detail=f"Workflow has {parked} paused executions; approve, reject or wait for them first",
                )
            self._replace_graph(workflow, data.nodes, data.connections or [])

        self.db.commit()
        self.db.refresh(workflow)
        return workflow

    def delete_workflow(self, workflow_id: int, user: User) -> dict:
        workflow = self.get_workflow(workflow_id, user)
        self.db.delete(workflow)
        self.db.commit()
        logger.info(f"🗑️ Workflow {workflow_id} deleted by user {user.id}")
        return {"success": True, "message": "Workflow deleted"}

    def set_status(self, workflow_id: int, user: User, active: bool) -> Workflow:
        workflow = self.get_workflow(workflow_id, user)
        if active and not any(n.node_type == "trigger" for n in workflow.nodes):
            raise HTTPException(status_code=400, detail="Workflow needs a trigger node before it can be activated")
        workflow.status = "active" if active else "inactive"
        self.db.commit()
        self.db.refresh(workflow)
        return workflow

    # ------------------------------------------------------------- executions

    def get_executions(self, workflow_id: int, user: User) -> list[WorkflowExecution]:
        self.get_workflow(workflow_id, user)
        return (
            self.db.query(WorkflowExecution)
            .filter(WorkflowExecution.workflow_id == workflow_id)
            .order_by(WorkflowExecution.created_at.desc(), WorkflowExecution.id.desc())
            .limit(EXECUTION_HISTORY_LIMIT)
            .all()
        )

    def execute(self, workflow_id: int, user: User, trigger_data: dict) -> WorkflowExecution:
        workflow = self.get_workflow(workflow_id, user)
        if workflow.status != "active":
            raise HTTPException(status_code=400, detail="Workflow is not active")
        return WorkflowEngine(self.db).start(workflow, trigger_data)

    # -------------------------------------------------------------- approvals

    def get_pending_approvals(self, user: User) -> list[WorkflowExecution]:
        return (
            self.db.query(WorkflowExecution)
            .options(joinedload(WorkflowExecution.workflow))
            .filter(WorkflowExecution.user_id == user.id, WorkflowExecution.status == "pending_approval")
            .order_by(WorkflowExecution.paused_at.desc())
            .all()
        )

    def _get_pending_execution(self, execution_id: int, user: User) -> WorkflowExecution:
        execution = (
            self.db.query(WorkflowExecution)
            .filter(WorkflowExecution.id == execution_id, WorkflowExecution.user_id == user.id)
            .first()
        )
        if not execution:
            raise HTTPException(status_code=404, detail="Execution not found")
        if execution.status != "pending_approval":
            raise HTTPException(status_code=400, detail="Execution is not waiting for approval")
        return execution

    def approve(self, execution_id: int, user: User) -> WorkflowExecution:
        execution = self._get_pending_execution(execution_id, user)
        logger.info(f"👍 Execution {execution_id} approved by user {user.id}")
        return WorkflowEngine(self.db).approve(execution)

    def reject(self, execution_id: int, user: User) -> WorkflowExecution:
        execution = self._get_pending_execution(execution_id, user)
        logger.info(f"👎 Execution {execution_id} rejected by user {user.id}")
        return WorkflowEngine(self.db).reject(execution)
