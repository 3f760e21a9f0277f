from fastapi import APIRouter

from portal.api.v1.endpoints import (
    # Manager overview and actions
    manager,
    # Agent dashboard and notification inbox
    agent,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Manager ====================
api_router.include_router(
    manager.router,
    prefix="/manager",
    tags=["Manager"]
)

# ==================== Agent ====================
api_router.include_router(
    agent.router,
    prefix="/agent",
    tags=["Agent"]
)
