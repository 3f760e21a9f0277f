"""API endpoints for the manager dashboard."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from portal.api.deps import ManagerContext, ManagerService, Notifications
from portal.schemas.catalog import (
    GameCreate, GameResponse, AgentCreate, AgentResponse,
    CredentialCreate, CredentialResponse, GameSettingCreate, GameSettingResponse,
)
from portal.schemas.commission import CommissionRuleCreate, CommissionRuleResponse
from portal.schemas.dashboard import ManagerDashboard
from portal.schemas.notifications import (
    NotificationCreate, NotificationView, NotificationListResponse,
)
from portal.services.manager_dashboard import DuplicateAgentError
from portal.services.notification_center import InvalidNotificationError

router = APIRouter()


@router.get("/dashboard", response_model=ManagerDashboard)
async def get_manager_dashboard(
    context: ManagerContext,
    service: ManagerService,
    analytics_date: Optional[date] = Query(None, description="Day of game analytics; defaults to today"),
):
    """Games, agents, credentials, rules, analytics, performance and notifications."""
    return await service.load(analytics_date)


# ==================== Catalog ====================

@router.get("/games", response_model=List[GameResponse])
async def list_games(
    context: ManagerContext,
    service: ManagerService,
    search: Optional[str] = Query(None, description="Match against title or description"),
):
    return await service.list_games(search)


@router.post("/games", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_game(data: GameCreate, context: ManagerContext, service: ManagerService):
    """Add a game and announce it to all agents."""
    return await service.create_game(context, data)


@router.post("/agents", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def create_agent(data: AgentCreate, context: ManagerContext, service: ManagerService):
    """Register an agent and announce it to all agents."""
    try:
        return await service.create_agent(context, data)
    except DuplicateAgentError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/credentials", response_model=CredentialResponse, status_code=status.HTTP_201_CREATED)
async def create_credential(data: CredentialCreate, context: ManagerContext, service: ManagerService):
    return await service.create_credential(context, data)


@router.post("/commission-rules", response_model=CommissionRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_commission_rule(data: CommissionRuleCreate, context: ManagerContext, service: ManagerService):
    return await service.create_commission_rule(context, data)


@router.post("/game-settings", response_model=GameSettingResponse, status_code=status.HTTP_201_CREATED)
async def create_game_setting(data: GameSettingCreate, context: ManagerContext, service: ManagerService):
    return await service.create_game_setting(context, data)


# ==================== Notifications ====================

@router.post("/notifications", response_model=NotificationView, status_code=status.HTTP_201_CREATED)
async def send_notification(data: NotificationCreate, context: ManagerContext, service: ManagerService):
    """Send a notification to one agent, or to all agents when recipient_id is omitted."""
    try:
        return await service.send_notification(context, data)
    except InvalidNotificationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get("/notifications", response_model=NotificationListResponse)
async def list_sent_notifications(context: ManagerContext, center: Notifications):
    """Most recent notifications sent from the portal."""
    page = await center.list_sent()
    return NotificationListResponse(
        items=page.items,
        unread_count=page.unread_count,
        size=center.page_size,
    )
