import uuid
from datetime import datetime

from pydantic import BaseModel


class AdminUserResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    avatar_url: str | None
    is_admin: bool
    special_badges: list[str]
    created_at: datetime


class BadgeResponse(BaseModel):
    id: str
    title: str
    description: str
    icon: str

    model_config = {"from_attributes": True}


class BadgeGrantRequest(BaseModel):
    user_id: uuid.UUID
    badge_id: str


class SpecialBadgeGrantResponse(BaseModel):
    badge_id: str
    granted_at: datetime
    granted_by: uuid.UUID | None

    model_config = {"from_attributes": True}


class BadgeChangeResponse(BaseModel):
    message: str
    user_id: uuid.UUID
    username: str
    special_badges: list[SpecialBadgeGrantResponse]
