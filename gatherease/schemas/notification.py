"""Pydantic schemas for in-app notifications."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from enum import Enum
from datetime import datetime


class NotificationTypeEnum(str, Enum):
    event = "event"
    survey = "survey"
    reminder = "reminder"
    info = "info"


class NotificationCreate(BaseModel):
    """Input accepted by the in-app notification store."""
    user_id: str
    type: NotificationTypeEnum
    title: str
    message: str
    event_id: Optional[str] = None
    action_url: Optional[str] = None
    action_label: Optional[str] = None


class NotificationOut(BaseModel):
    id: str
    user_id: str
    type: NotificationTypeEnum
    title: str
    message: str
    event_id: Optional[str] = None
    action_url: Optional[str] = None
    action_label: Optional[str] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationList(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int = Field(..., description="Unread notifications for the user")


class MarkAllReadResponse(BaseModel):
    updated: int
