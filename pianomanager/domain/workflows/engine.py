"""
Workflow engine

Runs a workflow graph starting from its trigger node. Nodes are visited with
an explicit stack; an execution that reaches a positive delay or an approval
node is parked (``delayed`` / ``pending_approval``) together with the node
ids of any sibling branches, and picked up again by the delayed-workflow job
or by an approve/reject decision.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from dateutil import parser as date_parser
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import deliver_email
from ...email_templates import DEFAULT_APPROVAL_MESSAGE, message_template
from ...models import Appointment, Client, Notification, User
from ...models_workflow import Workflow, WorkflowExecution, WorkflowNode
from ...shared.templating import _MISSING, get_path, replace_variables
from ..appointments.schemas import APPOINTMENT_STATUSES
from ..invoices.schemas import INVOICE_STATUSES
from ..notifications.service import create_notification

logger = logging.getLogger(__name__)

# Guard against cyclic graphs
MAX_STEPS = 500

DELAY_UNITS = {
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
    "days": 86400,
}

PARKED_STATUSES = ("delayed", "pending_approval")


class WorkflowError(Exception):
    """A workflow definition or action that cannot be executed"""


# ============================================================================
# CONDITIONS
# ============================================================================


def lookup_field(field: str, variables: dict, trigger_data: dict) -> Any:
    """Resolve a condition field against execution variables first, then trigger data"""
    for source in (variables or {}, trigger_data or {}):
        value = get_path(source, field)
        if value is not _MISSING and value is not None:
            return value
    return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def evaluate_condition(config: dict, variables: dict, trigger_data: dict) -> bool:
    """
    Evaluate ``field operator value``.

    Supported operators: equals, not_equals, greater_than, less_than, contains.
    Incomplete or unknown conditions evaluate to False.
    """
    field = config.get("field")
    operator = config.get("operator")
    if not field or not operator or "value" not in config:
        return False

    expected = config["value"]
    actual = lookup_field(field, variables, trigger_data)

    if operator in ("equals", "not_equals"):
        if actual is None:
            equal = expected is None
        else:
            left, right = _as_number(actual), _as_number(expected)
            equal = left == right if left is not None and right is not None else str(actual) == str(expected)
        return equal if operator == "equals" else not equal

    if operator in ("greater_than", "less_than"):
        left, right = _as_number(actual), _as_number(expected)
        if left is None or right is None:
            return False
        return left > right if operator == "greater_than" else left < right

    if operator == "contains":
        if actual is None:
            return False
        if isinstance(actual, (list, tuple)):
            return expected in actual or str(expected) in [str(a) for a in actual]
        return str(expected) in str(actual)

    logger.warning(f"[Workflow Engine] Unknown condition operator: {operator}")
    return False


def delay_seconds(config: dict) -> float:
    try:
        duration = float(config.get("duration") or 0)
    except (TypeError, ValueError):
        duration = 0
    return duration * DELAY_UNITS.get(config.get("unit") or "minutes", 60)


# ============================================================================
# ENGINE
# ============================================================================


class WorkflowEngine:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------ graph

    @staticmethod
    def _successors(
        workflow: Workflow, node_id: int, connection_types: Optional[tuple] = None
    ) -> list[int]:
        """Target node ids leaving ``node_id``; ``connection_types`` filters typed edges"""
        targets = []
        for conn in workflow.connections:
            if conn.source_node_id != node_id:
                continue
            if connection_types is not None and conn.connection_type not in connection_types:
                continue
            targets.append(conn.target_node_id)
        return targets

    @staticmethod
    def _trigger_node(workflow: Workflow) -> WorkflowNode:
        for node in workflow.nodes:
            if node.node_type == "trigger":
                return node
        raise WorkflowError("No trigger node found in workflow")

    # -------------------------------------------------------------- lifecycle

    def start(self, workflow: Workflow, trigger_data: Optional[dict] = None) -> WorkflowExecution:
        """Create an execution for ``workflow`` and run it until it finishes or parks"""
        execution = WorkflowExecution(
            workflow_id=workflow.id,
            user_id=workflow.user_id,
            status="running",
            trigger_data=trigger_data or {},
            variables={},
            started_at=datetime.utcnow(),
        )
        self.db.add(execution)
        self.db.commit()
        self.db.refresh(execution)
        logger.info(f"[Workflow Engine] Execution {execution.id} started for workflow {workflow.id}")

        def _first_steps():
            return [self._trigger_node(workflow).id]

        return self._guarded_run(execution, _first_steps)

    def resume_delayed(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Continue a delayed execution after its delay node"""
        workflow = execution.workflow
        paused_node = execution.current_node_id
        pending = list(execution.pending_nodes or [])

        execution.status = "running"
        execution.resume_at = None
        execution.pending_nodes = None
        self.db.commit()

        return self._guarded_run(execution, lambda: self._successors(workflow, paused_node)[::-1] + pending)

    def approve(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Resume from the approval node along ``approved`` or untyped connections"""
        workflow = execution.workflow
        node_id = execution.current_node_id
        pending = list(execution.pending_nodes or [])

        self._close_approval(execution, "approved")
        return self._guarded_run(
            execution, lambda: self._successors(workflow, node_id, (None, "approved"))[::-1] + pending
        )

    def reject(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Follow ``rejected`` connections, if any, and end the execution as rejected"""
        workflow = execution.workflow
        node_id = execution.current_node_id

        self._close_approval(execution, "rejected")
        return self._guarded_run(
            execution, lambda: self._successors(workflow, node_id, ("rejected",))[::-1], finish_as="rejected"
        )

    def _close_approval(self, execution: WorkflowExecution, decision: str) -> None:
        execution.status = "running"
        execution.approval_decision = decision
        execution.pending_nodes = None
        variables = dict(execution.variables or {})
        variables["approval"] = {"decision": decision, "decidedAt": datetime.utcnow().isoformat()}
        execution.variables = variables

        self.db.query(Notification).filter(
            Notification.workflow_execution_id == execution.id,
            Notification.type == "approval_pending",
        ).update({Notification.is_read: True}, synchronize_session=False)
        self.db.commit()

    def _guarded_run(self, execution: WorkflowExecution, first_steps, finish_as: str = "completed"):
        """Run the graph; any error marks the execution failed instead of propagating"""
        try:
            self._run(execution, first_steps(), finish_as)
        except Exception as e:
            self.db.rollback()
            logger.error(f"[Workflow Engine] Execution {execution.id} failed: {e}")
            execution.status = "failed"
            execution.error = str(e)
            execution.completed_at = datetime.utcnow()
            self.db.commit()
        self.db.refresh(execution)
        return execution

    # -------------------------------------------------------------- execution

    def _run(self, execution: WorkflowExecution, stack: list[int], finish_as: str) -> None:
        workflow = execution.workflow
        nodes = {node.id: node for node in workflow.nodes}
        steps = 0

        while stack:
            steps += 1
            if steps > MAX_STEPS:
                raise WorkflowError(f"Workflow exceeded {MAX_STEPS} steps; check for cycles")

            node = nodes.get(stack.pop())
            if node is None:
                continue

            execution.current_node_id = node.id
            config = node.node_config or {}
            logger.debug(f"[Workflow Engine] Executing node {node.id} ({node.node_type})")

            if node.node_type == "condition":
                outcome = evaluate_condition(config, execution.variables or {}, execution.trigger_data or {})
                branch = "true" if outcome else "false"
                stack.extend(self._successors(workflow, node.id, (branch,))[::-1])
                continue

            if node.node_type == "action":
                self._execute_action(execution, config)

            elif node.node_type == "delay":
                seconds = delay_seconds(config)
                if seconds > 0:
                    self._park_delay(execution, node, seconds, stack)
                    return

            elif node.node_type == "approval":
                self._park_approval(execution, node, config, stack)
                return

            stack.extend(self._successors(workflow, node.id)[::-1])

        execution.status = finish_as
        execution.completed_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"[Workflow Engine] Execution {execution.id} {finish_as}")

    def _park_delay(self, execution: WorkflowExecution, node: WorkflowNode, seconds: float, stack: list[int]):
        execution.status = "delayed"
        execution.resume_at = datetime.utcnow() + timedelta(seconds=seconds)
        execution.pending_nodes = list(stack)
        self.db.commit()
        logger.info(f"[Workflow Engine] Execution {execution.id} delayed until {execution.resume_at}")

    def _park_approval(self, execution: WorkflowExecution, node: WorkflowNode, config: dict, stack: list[int]):
        now = datetime.utcnow()
        message = replace_variables(config.get("message") or DEFAULT_APPROVAL_MESSAGE, self._context(execution))

        execution.status = "pending_approval"
        execution.paused_at = now
        execution.pending_approval_data = {"message": message, "nodeId": node.id, "pausedAt": now.isoformat()}
        execution.pending_nodes = list(stack)

        create_notification(
            self.db,
            user_id=execution.user_id,
            type="approval_pending",
            title=f"Approval required: {execution.workflow.name}",
            message=message,
            data={"workflowId": execution.workflow_id, "executionId": execution.id, "nodeId": node.id},
            workflow_execution_id=execution.id,
        )
        self.db.commit()
        logger.info(f"[Workflow Engine] Execution {execution.id} waiting for approval at node {node.id}")

    # ---------------------------------------------------------------- actions

    def _context(self, execution: WorkflowExecution) -> dict:
        """Data available to ``{entity.field}`` placeholders"""
        owner = execution.user
        context = {
            "workflow": {"id": execution.workflow_id, "name": execution.workflow.name},
            "user": {"id": owner.id, "name": owner.name, "email": owner.email},
        }
        context.update(execution.variables or {})
        context.update(execution.trigger_data or {})
        return context

    def _execute_action(self, execution: WorkflowExecution, config: dict) -> None:
        action_type = config.get("actionType")
        logger.info(f"[Workflow Engine] Executing action: {action_type}")

        handlers = {
            "send_email": self._send_email,
            "create_reminder": self._create_reminder,
            "create_appointment": self._create_appointment,
            "update_status": self._update_status,
        }
        handler = handlers.get(action_type)
        if handler is None:
            logger.warning(f"[Workflow Engine] Unknown action type: {action_type}, skipping")
            return
        handler(execution, config, self._context(execution))

    def _set_variable(self, execution: WorkflowExecution, key: str, value: Any) -> None:
        variables = dict(execution.variables or {})
        variables[key] = value
        execution.variables = variables

    def _send_email(self, execution: WorkflowExecution, config: dict, context: dict) -> None:
        to = replace_variables(config.get("emailTo") or "", context).strip()
        if not to or "{" in to:
            logger.warning(f"[Workflow Engine] Execution {execution.id}: no email recipient, skipping")
            return

        subject = replace_variables(config.get("emailSubject") or execution.workflow.name, context)
        body = replace_variables(config.get("emailBody") or "", context)
        try:
            deliver_email(to, subject, message_template(subject, body), user=execution.user)
            self._set_variable(execution, "lastEmail", {"to": to, "subject": subject, "sent": True})
        except Exception as e:
            # Delivery problems do not stop the workflow
            logger.error(f"[Workflow Engine] Error in send_email action: {e}")
            self._set_variable(execution, "lastEmail", {"to": to, "subject": subject, "sent": False, "error": str(e)})

    def _create_reminder(self, execution: WorkflowExecution, config: dict, context: dict) -> None:
        title = replace_variables(config.get("title") or "Reminder", context)
        message = replace_variables(config.get("message") or "", context)

        due_date = None
        if config.get("dueInDays") is not None:
            due_date = (datetime.utcnow() + timedelta(days=float(config["dueInDays"]))).isoformat()
        elif config.get("date"):
            due_date = replace_variables(str(config["date"]), context)

        notification = create_notification(
            self.db,
            user_id=execution.user_id,
            type="reminder",
            title=title,
            message=message,
            data={"dueDate": due_date, "workflowId": execution.workflow_id, "executionId": execution.id},
        )
        self.db.flush()
        self._set_variable(execution, "reminder", {"id": notification.id, "title": title, "dueDate": due_date})

    def _create_appointment(self, execution: WorkflowExecution, config: dict, context: dict) -> None:
        client_id = config.get("clientId") or get_path(context, "client.id")
        if client_id is _MISSING or client_id is None:
            raise WorkflowError("create_appointment needs a clientId or a client in the trigger data")

        client = (
            self.db.query(Client)
            .filter(Client.id == int(client_id), Client.user_id == execution.user_id)
            .first()
        )
        if not client:
            raise WorkflowError(f"Client {client_id} not found")

        if config.get("date"):
            date = date_parser.isoparse(replace_variables(str(config["date"]), context))
        else:
            date = datetime.utcnow() + timedelta(days=float(config.get("daysFromNow", 1)))

        owner: User = execution.user
        appointment = Appointment(
            user_id=owner.id,
            partner_id=owner.partner_id,
            client_id=client.id,
            piano_id=config.get("pianoId"),
            technician_id=owner.id,
            title=replace_variables(config.get("title") or f"Appointment with {client.name}", context),
            date=date,
            duration=int(config.get("duration") or 60),
            service_type=config.get("serviceType") or config.get("type"),
            status="scheduled",
            notes=replace_variables(config.get("notes") or "", context) or None,
            address=client.address,
        )
        self.db.add(appointment)
        self.db.flush()
        self._set_variable(
            execution, "appointment", {"id": appointment.id, "title": appointment.title, "date": date.isoformat()}
        )

    def _update_status(self, execution: WorkflowExecution, config: dict, context: dict) -> None:
        """Change an appointment or invoice status through its service's state machine"""
        from ..appointments.service import AppointmentService
        from ..invoices.service import InvoiceService

        entity_type = config.get("entityType")
        new_status = config.get("newStatus")
        services = {
            "appointment": (AppointmentService, APPOINTMENT_STATUSES),
            "invoice": (InvoiceService, INVOICE_STATUSES),
        }
        if entity_type not in services:
            raise WorkflowError(f"update_status does not support entity type: {entity_type}")

        service_class, statuses = services[entity_type]
        if new_status not in statuses:
            raise WorkflowError(f"Invalid {entity_type} status: {new_status}")

        entity_id = config.get("entityId") or get_path(context, f"{entity_type}.id")
        if entity_id is _MISSING or entity_id is None:
            raise WorkflowError(f"update_status needs an entityId or a {entity_type} in the trigger data")

        try:
            service_class(self.db).change_status(int(entity_id), new_status, execution.user)
        except HTTPException as e:
            raise WorkflowError(e.detail) from e
