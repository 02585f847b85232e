"""Domain events that start workflows"""

import logging
from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...models import User
from ...models_workflow import Workflow
from .engine import WorkflowEngine

logger = logging.getLogger(__name__)


def _serialize(payload: dict[str, Any]) -> dict[str, Any]:
    data = {}
    for key, value in (payload or {}).items():
        if isinstance(value, BaseModel):
            data[key] = value.model_dump(mode="json")
        else:
            data[key] = value
    return data


def fire_event(db: Session, user: User, event_type: str, payload: dict[str, Any]) -> int:
    """
    Run every active workflow of ``user`` listening for ``event_type``.

    Engine failures are recorded on the execution and logged; they never
    propagate to the request that raised the event. Returns the number of
    executions started.
    """
    workflows = (
        db.query(Workflow)
        .filter(
            Workflow.user_id == user.id,
            Workflow.trigger_type == event_type,
            Workflow.status == "active",
        )
        .all()
    )
    if not workflows:
        return 0

    trigger_data = _serialize(payload)
    engine = WorkflowEngine(db)
    started = 0
    for workflow in workflows:
        try:
            engine.start(workflow, trigger_data)
            started += 1
        except Exception as e:
            db.rollback()
            logger.error(f"[Workflow Triggers] {event_type} failed for workflow {workflow.id}: {e}")

    logger.info(f"[Workflow Triggers] {event_type}: {started}/{len(workflows)} workflows started for user {user.id}")
    return started
