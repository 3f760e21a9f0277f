"""Pydantic schemas for games, agents, credentials and game settings."""
from datetime import datetime
from typing import Optional

from pydantic import Field, EmailStr

from portal.schemas.base import BaseResponseSchema, BaseCreateSchema


# ==================== Games ====================

class GameCreate(BaseCreateSchema):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    player_link: Optional[str] = Field(None, max_length=500)
    agent_link: Optional[str] = Field(None, max_length=500)


class GameResponse(BaseResponseSchema):
    id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    player_link: Optional[str] = None
    agent_link: Optional[str] = None
    created_at: Optional[datetime] = None


class GameSettingCreate(BaseCreateSchema):
    game_id: str
    setting_key: str = Field(..., min_length=1, max_length=100)
    setting_value: str
    setting_type: str = Field("string", max_length=20)
    description: Optional[str] = None


class GameSettingResponse(BaseResponseSchema):
    """Game setting joined with its game title."""
    id: str
    game_id: str
    setting_key: str
    setting_value: str
    setting_type: str = "string"
    description: Optional[str] = None
    game_title: str


# ==================== Agents ====================

class AgentCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr


class AgentResponse(BaseResponseSchema):
    id: str
    name: str
    email: str
    role: str
    referral_code: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


# ==================== Credentials ====================

class CredentialCreate(BaseCreateSchema):
    game_id: str
    username: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=1, max_length=200)
    assigned_to: Optional[str] = None
    # Also record the agent/game assignment when the credential is assigned
    assign_game: bool = True


class CredentialResponse(BaseResponseSchema):
    """Credential joined with game title and agent name."""
    id: str
    game_id: str
    username: str
    password: str
    assigned_to: Optional[str] = None
    game_title: str
    agent_name: str
