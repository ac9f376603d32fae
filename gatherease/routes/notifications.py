"""In-app notification inbox endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gatherease.db import get_db
from gatherease.schemas.notification import MarkAllReadResponse, NotificationList, NotificationOut
from gatherease.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/{user_id}", response_model=NotificationList)
def list_user_notifications(
    user_id: str,
    unread_only: bool = Query(False, description="Only return unread notifications"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db)
):
    """Newest notifications first, with the user's unread count."""
    items = notification_service.list_notifications(db, user_id, unread_only=unread_only, limit=limit)
    return NotificationList(
        notifications=[NotificationOut.model_validate(n) for n in items],
        unread_count=notification_service.unread_count(db, user_id),
    )


@router.get("/{user_id}/unread-count")
def get_unread_count(user_id: str, db: Session = Depends(get_db)):
    return {"unread_count": notification_service.unread_count(db, user_id)}


@router.post("/{user_id}/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(user_id: str, db: Session = Depends(get_db)):
    return MarkAllReadResponse(updated=notification_service.mark_all_read(db, user_id))


@router.post("/{user_id}/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(user_id: str, notification_id: str, db: Session = Depends(get_db)):
    return notification_service.mark_read(db, user_id, notification_id)
