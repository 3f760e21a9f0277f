"""Pydantic schemas for commission rules and computed commission."""
from decimal import Decimal
from typing import Optional, List

from pydantic import Field

from portal.models.commission import CommissionType
from portal.schemas.base import BaseResponseSchema, BaseCreateSchema, DisplayAmount


class CommissionRuleCreate(BaseCreateSchema):
    agent_id: str
    game_id: Optional[str] = None
    commission_rate: Decimal = Field(..., ge=0)
    commission_type: CommissionType = CommissionType.PERCENTAGE


class CommissionRuleResponse(BaseResponseSchema):
    """Commission rule joined with agent name and game title."""
    id: str
    agent_id: str
    game_id: Optional[str] = None
    commission_rate: Decimal
    commission_type: str
    agent_name: str
    game_title: str


class CommissionLine(BaseResponseSchema):
    """Commission an agent earns on one game's revenue."""
    game_id: str
    game_title: str
    revenue: float = 0
    rule_id: Optional[str] = None
    commission_rate: Optional[Decimal] = None
    commission_type: Optional[str] = None
    commission_amount: DisplayAmount = Decimal("0")


class RuleConflict(BaseResponseSchema):
    """More than one rule configured for the same (agent, game) pair."""
    agent_id: str
    game_id: Optional[str] = None
    rule_ids: List[str]
