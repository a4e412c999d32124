from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_admin_user, get_db
from app.models.user import User
from app.schemas.admin import (
    AdminUserResponse,
    BadgeChangeResponse,
    BadgeGrantRequest,
    BadgeResponse,
)
from app.services import admin_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(get_admin_user),
) -> list[AdminUserResponse]:
    return await admin_service.list_users(db)


@router.get("/badges", response_model=list[BadgeResponse])
async def list_badges(
    _admin: User = Depends(get_admin_user),
) -> list[BadgeResponse]:
    return admin_service.list_badges()


@router.post("/badge/grant", response_model=BadgeChangeResponse)
async def grant_badge(
    body: BadgeGrantRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user),
) -> BadgeChangeResponse:
    return await admin_service.grant_badge(db, admin, body.user_id, body.badge_id)


@router.post("/badge/revoke", response_model=BadgeChangeResponse)
async def revoke_badge(
    body: BadgeGrantRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(get_admin_user),
) -> BadgeChangeResponse:
    return await admin_service.revoke_badge(db, admin, body.user_id, body.badge_id)
