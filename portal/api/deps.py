from typing import Annotated, Optional
import logging

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.core.session_context import SessionContext, NoSessionContextError
from portal.models.user import UserRole
from portal.services.record_store import RecordStore, SQLAlchemyRecordStore
from portal.services.notification_center import NotificationCenter
from portal.services.manager_dashboard import ManagerDashboardService
from portal.services.agent_dashboard import AgentDashboardService


logger = logging.getLogger(__name__)


async def get_session_context(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_role: Annotated[Optional[str], Header()] = None,
    x_user_name: Annotated[Optional[str], Header()] = None,
) -> SessionContext:
    """
    Dependency to get the caller's session context.

    Authentication happens at the gateway, which forwards the verified
    identity as X-User-Id / X-User-Role (and optionally X-User-Name).
    """
    try:
        return SessionContext.from_values(x_user_id, x_user_role, x_user_name)
    except NoSessionContextError as e:
        logger.warning("Rejected request without a valid session context: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


def require_role(role: UserRole):
    """
    Dependency factory selecting the view a role may use.

    Usage:
        @router.get("/dashboard")
        async def dashboard(context: Annotated[SessionContext, Depends(require_role(UserRole.MANAGER))]):
            ...
    """
    async def role_dependency(
        context: Annotated[SessionContext, Depends(get_session_context)],
    ) -> SessionContext:
        if context.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This view requires the {role.value} role",
            )
        return context

    return role_dependency


async def get_record_store(db: Annotated[AsyncSession, Depends(get_db)]) -> RecordStore:
    return SQLAlchemyRecordStore(db)


async def get_notification_center(
    store: Annotated[RecordStore, Depends(get_record_store)],
) -> NotificationCenter:
    return NotificationCenter(store)


async def get_manager_service(
    store: Annotated[RecordStore, Depends(get_record_store)],
    center: Annotated[NotificationCenter, Depends(get_notification_center)],
) -> ManagerDashboardService:
    return ManagerDashboardService(store, center)


async def get_agent_service(
    store: Annotated[RecordStore, Depends(get_record_store)],
    center: Annotated[NotificationCenter, Depends(get_notification_center)],
) -> AgentDashboardService:
    return AgentDashboardService(store, center)


# Type aliases for cleaner endpoint signatures
ManagerContext = Annotated[SessionContext, Depends(require_role(UserRole.MANAGER))]
AgentContext = Annotated[SessionContext, Depends(require_role(UserRole.AGENT))]
Notifications = Annotated[NotificationCenter, Depends(get_notification_center)]
ManagerService = Annotated[ManagerDashboardService, Depends(get_manager_service)]
AgentService = Annotated[AgentDashboardService, Depends(get_agent_service)]
