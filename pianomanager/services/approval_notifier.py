"""
Email reminders for workflow executions stuck waiting for approval

Executions paused in ``pending_approval`` for longer than
APPROVAL_STALE_HOURS are emailed to their owner once. The linked
``approval_pending`` notification records ``emailSent`` so later runs skip
the execution.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session, joinedload

from ..config import APPROVAL_STALE_HOURS
from ..domain.notifications.service import create_notification
from ..email_service import send_approval_email
from ..models import Notification
from ..models_workflow import WorkflowExecution

logger = logging.getLogger(__name__)


def _approval_notification(db: Session, execution: WorkflowExecution):
    return (
        db.query(Notification)
        .filter(
            Notification.workflow_execution_id == execution.id,
            Notification.type == "approval_pending",
        )
        .order_by(Notification.id)
        .first()
    )


def check_pending_approvals_and_notify(db: Session, now: datetime = None) -> dict:
    """
    Send reminder emails for stale approvals.

    Returns:
        dict: {"total": int, "sent": int, "failed": int}
    """
    now = now or datetime.utcnow()
    cutoff = now - timedelta(hours=APPROVAL_STALE_HOURS)

    executions = (
        db.query(WorkflowExecution)
        .options(joinedload(WorkflowExecution.user), joinedload(WorkflowExecution.workflow))
        .filter(
            WorkflowExecution.status == "pending_approval",
            WorkflowExecution.paused_at.isnot(None),
            WorkflowExecution.paused_at < cutoff,
        )
        .order_by(WorkflowExecution.paused_at)
        .all()
    )
    # total covers every stale execution, including ones already emailed
    summary = {"total": len(executions), "sent": 0, "failed": 0}

    for execution in executions:
        notification = _approval_notification(db, execution)
        if notification is not None and (notification.data or {}).get("emailSent"):
            continue

        try:
            approval_data = execution.pending_approval_data or {}
            result = send_approval_email(
                execution.user,
                workflow_name=execution.workflow.name,
                execution_id=execution.id,
                approval_message=approval_data.get("message"),
            )
            if not result.get("success"):
                summary["failed"] += 1
                logger.warning(
                    f"[Approval Notifier] Execution {execution.id} not emailed: {result.get('error')}"
                )
                continue

            if notification is None:
                notification = create_notification(
                    db,
                    user_id=execution.user_id,
                    type="approval_pending",
                    title=f"Approval required: {execution.workflow.name}",
                    message=approval_data.get("message"),
                    data={"workflowId": execution.workflow_id, "executionId": execution.id},
                    workflow_execution_id=execution.id,
                )

            data = dict(notification.data or {})
            data["emailSent"] = True
            data["emailSentAt"] = now.isoformat()
            notification.data = data
            db.commit()
            summary["sent"] += 1

        except Exception as e:
            db.rollback()
            summary["failed"] += 1
            logger.error(f"[Approval Notifier] Execution {execution.id} failed: {e}")

    logger.info(
        f"[Approval Notifier] total={summary['total']} sent={summary['sent']} failed={summary['failed']}"
    )
    return summary
