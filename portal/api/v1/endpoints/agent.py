"""API endpoints for the agent dashboard."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from portal.api.deps import AgentContext, AgentService, Notifications
from portal.schemas.dashboard import AgentDashboard
from portal.schemas.notifications import NotificationListResponse, MarkReadResponse

router = APIRouter()


@router.get("/dashboard", response_model=AgentDashboard)
async def get_agent_dashboard(
    context: AgentContext,
    service: AgentService,
    analytics_date: Optional[date] = Query(None, description="Day of game analytics; defaults to today"),
):
    """Assigned games, credentials, notifications, performance and commission."""
    return await service.load(context, analytics_date)


@router.get("/notifications", response_model=NotificationListResponse)
async def get_my_notifications(context: AgentContext, center: Notifications):
    """Notifications addressed to the agent or broadcast, newest first."""
    page = await center.list_for_agent(context)
    return NotificationListResponse(
        items=page.items,
        unread_count=page.unread_count,
        size=center.page_size,
    )


@router.post("/notifications/read-all", response_model=MarkReadResponse)
async def mark_all_read(context: AgentContext, center: Notifications):
    """Mark every unread notification of the current page as read."""
    page = await center.list_for_agent(context)
    marked = await center.mark_all_as_read(context, page)
    return MarkReadResponse(marked_read=marked, unread_count=page.unread_count)


@router.post("/notifications/{notification_id}/read", response_model=MarkReadResponse)
async def mark_notification_read(notification_id: str, context: AgentContext, center: Notifications):
    """Mark one notification as read. Already-read notifications are left as they are."""
    page = await center.list_for_agent(context)
    if page.get(notification_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    marked = await center.mark_as_read(context, page, notification_id)
    return MarkReadResponse(marked_read=int(marked), unread_count=page.unread_count)
