"""In-app notification store.

The in-app row is the system of record for everything the dispatcher
sends; external channels are best-effort on top of it.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gatherease.exceptions import DataUnavailable, NotFoundException
from gatherease.models.notification import Notification, NotificationType
from gatherease.schemas.notification import NotificationCreate

logger = logging.getLogger("gatherease.notifications")


def create_notification(db: Session, data: NotificationCreate) -> Notification:
    """Persist and commit one notification."""
    notification = Notification(
        user_id=data.user_id,
        type=NotificationType(data.type.value),
        title=data.title,
        message=data.message,
        event_id=data.event_id,
        action_url=data.action_url,
        action_label=data.action_label,
        is_read=False,
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store notification for user {data.user_id}: {e}")
        raise DataUnavailable(f"notification for user {data.user_id}") from e
    db.refresh(notification)
    return notification


def list_notifications(db: Session, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def unread_count(db: Session, user_id: str) -> int:
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).count()


def mark_read(db: Session, user_id: str, notification_id: str) -> Notification:
    """Mark one of the user's notifications as read.

    Notifications belonging to someone else are reported as not found.
    """
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if not notification:
        raise NotFoundException("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.is_read.is_(False)
    ).update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return updated
