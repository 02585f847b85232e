"""Resume delayed workflow executions once their delay has elapsed"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..domain.workflows.engine import WorkflowEngine
from ..models_workflow import WorkflowExecution

logger = logging.getLogger(__name__)


def resume_due_executions(db: Session, now: datetime = None) -> dict:
    now = now or datetime.utcnow()
    due = (
        db.query(WorkflowExecution)
        .filter(
            WorkflowExecution.status == "delayed",
            WorkflowExecution.resume_at.isnot(None),
            WorkflowExecution.resume_at <= now,
        )
        .order_by(WorkflowExecution.resume_at)
        .all()
    )

    summary = {"resumed": 0, "failed": 0}
    engine = WorkflowEngine(db)
    for execution in due:
        result = engine.resume_delayed(execution)
        if result.status == "failed":
            summary["failed"] += 1
        else:
            summary["resumed"] += 1

    if due:
        logger.info(f"⏱️ Delayed workflows: {summary}")
    return summary
