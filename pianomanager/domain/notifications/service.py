"""In-app notifications"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Notification, User

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    type: str,
    title: str,
    message: Optional[str] = None,
    data: Optional[dict] = None,
    workflow_execution_id: Optional[int] = None,
) -> Notification:
    """Add a notification to the session; the caller commits"""
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data,
        workflow_execution_id=workflow_execution_id,
    )
    db.add(notification)
    return notification


class NotificationService:
    def __init__(self, db: Session):
        self.db = db

    def get_notifications(self, user: User, unread_only: bool = False, limit: int = 50) -> list[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user.id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def unread_count(self, user: User) -> int:
        return (
            self.db.query(func.count(Notification.id))
            .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
            .scalar()
        )

    def get_notification(self, notification_id: int, user: User) -> Notification:
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user.id)
            .first()
        )
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        return notification

    def mark_read(self, notification_id: int, user: User) -> Notification:
        notification = self.get_notification(notification_id, user)
        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user: User) -> int:
        updated = (
            self.db.query(Notification)
            .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated

    def delete_notification(self, notification_id: int, user: User) -> None:
        notification = self.get_notification(notification_id, user)
        self.db.delete(notification)
        self.db.commit()
        logger.info(f"🗑️ Notification {notification_id} deleted for user {user.id}")
