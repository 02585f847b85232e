"""
Workflow automation models: definitions, graph nodes/connections and executions
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Workflow(Base):
    __tablename__ = "workflows"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    trigger_type = Column(String(50), nullable=False, index=True)  # manual, client_created, invoice_paid...
    trigger_config = Column(JSON, nullable=True)
    status = Column(String(20), default="inactive", nullable=False)  # active, inactive
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    nodes = relationship(
        "WorkflowNode", back_populates="workflow", cascade="all, delete-orphan", order_by="WorkflowNode.id"
    )
    connections = relationship(
        "WorkflowConnection",
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="WorkflowConnection.id",
    )
    executions = relationship("WorkflowExecution", back_populates="workflow", cascade="all, delete-orphan")


class WorkflowNode(Base):
    __tablename__ = "workflow_nodes"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    node_type = Column(String(20), nullable=False)  # trigger, condition, action, delay, approval
    node_config = Column(JSON, nullable=True)
    position_x = Column(Float, default=0)
    position_y = Column(Float, default=0)

    workflow = relationship("Workflow", back_populates="nodes")


class WorkflowConnection(Base):
    __tablename__ = "workflow_connections"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    source_node_id = Column(Integer, ForeignKey("workflow_nodes.id", ondelete="CASCADE"), nullable=False)
    target_node_id = Column(Integer, ForeignKey("workflow_nodes.id", ondelete="CASCADE"), nullable=False)
    # None for plain edges, "true"/"false" after conditions, "approved"/"rejected" after approvals
    connection_type = Column(String(20), nullable=True)

    workflow = relationship("Workflow", back_populates="connections")


class WorkflowExecution(Base):
    __tablename__ = "workflow_executions"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # running, pending_approval, delayed, completed, failed, rejected
    status = Column(String(20), default="running", nullable=False, index=True)
    trigger_data = Column(JSON, nullable=True)
    variables = Column(JSON, nullable=True)
    current_node_id = Column(Integer, nullable=True)
    # Node ids of sibling branches still to run when a paused execution resumes
    pending_nodes = Column(JSON, nullable=True)
    # {"message": str, "nodeId": int, "pausedAt": iso}
    pending_approval_data = Column(JSON, nullable=True)
    paused_at = Column(DateTime, nullable=True, index=True)
    resume_at = Column(DateTime, nullable=True, index=True)
    approval_decision = Column(String(20), nullable=True)  # approved, rejected
    error = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    workflow = relationship("Workflow", back_populates="executions")
    user = relationship("User")
