"""Pydantic schemas for Notifications module."""
from datetime import datetime
from typing import Optional, List, Dict

from pydantic import BaseModel, Field

from portal.models.notifications import NotificationPriority
from portal.schemas.base import BaseResponseSchema, BaseCreateSchema


class NotificationCreate(BaseCreateSchema):
    """Schema for sending a notification. Omitting recipient_id broadcasts it."""
    recipient_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: str = Field("general", max_length=50)
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: Optional[str] = Field(None, max_length=500)
    expires_at: Optional[datetime] = None


class NotificationView(BaseResponseSchema):
    """Notification as seen by one viewer, with that viewer's read state."""
    id: str
    recipient_id: str
    sender_id: Optional[str] = None
    title: str
    message: str
    type: str = "general"
    priority: str = NotificationPriority.NORMAL.value
    action_url: Optional[str] = None
    read_status: int = 0
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_broadcast: bool = False
    is_expired: bool = False


class NotificationListResponse(BaseModel):
    """Response for listing notifications."""
    items: List[NotificationView]
    unread_count: int
    size: int


class MarkReadResponse(BaseModel):
    marked_read: int
    unread_count: int


class NotificationStats(BaseModel):
    """Notification statistics."""
    total: int
    unread: int
    by_type: Dict[str, int]
    by_priority: Dict[str, int]


class NotificationTypeResponse(BaseResponseSchema):
    id: str
    name: str
    description: Optional[str] = None
    default_enabled: bool = True


class NotificationPresentation(BaseModel):
    """Colour and icon used to render a notification."""
    color: str
    icon: str
