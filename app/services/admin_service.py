import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.achievements import SPECIAL_BADGES
from app.core.exceptions import InvalidInputError, NotFoundError
from app.models.gamification import SpecialBadgeGrant
from app.models.user import User
from app.schemas.admin import (
    AdminUserResponse,
    BadgeChangeResponse,
    BadgeResponse,
    SpecialBadgeGrantResponse,
)

logger = logging.getLogger(__name__)


async def _get_user_with_badges(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(
        select(User)
        .options(selectinload(User.special_badges))
        .where(User.id == user_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


def _badge_change_response(message: str, user: User) -> BadgeChangeResponse:
    return BadgeChangeResponse(
        message=message,
        user_id=user.id,
        username=user.username,
        special_badges=[
            SpecialBadgeGrantResponse.model_validate(g) for g in user.special_badges
        ],
    )


async def list_users(db: AsyncSession) -> list[AdminUserResponse]:
    result = await db.execute(
        select(User)
        .options(selectinload(User.special_badges))
        .order_by(User.created_at.desc())
    )
    return [
        AdminUserResponse(
            id=u.id,
            username=u.username,
            email=u.email,
            avatar_url=u.avatar_url,
            is_admin=u.is_admin,
            special_badges=[g.badge_id for g in u.special_badges],
            created_at=u.created_at,
        )
        for u in result.scalars().all()
    ]


def list_badges() -> list[BadgeResponse]:
    return [BadgeResponse.model_validate(b) for b in SPECIAL_BADGES.values()]


async def grant_badge(
    db: AsyncSession, admin: User, user_id: uuid.UUID, badge_id: str,
) -> BadgeChangeResponse:
    badge = SPECIAL_BADGES.get(badge_id)
    if badge is None:
        raise InvalidInputError("Invalid badge ID")

    user = await _get_user_with_badges(db, user_id)
    if any(g.badge_id == badge_id for g in user.special_badges):
        raise InvalidInputError("User already has this badge")

    user.special_badges.append(
        SpecialBadgeGrant(
            badge_id=badge_id,
            granted_at=datetime.now(timezone.utc),
            granted_by=admin.id,
        )
    )
    await db.flush()
    logger.info("Admin %s granted badge %s to user %s", admin.id, badge_id, user.id)

    return _badge_change_response(
        f'Badge "{badge.title}" granted to {user.username}', user,
    )


async def revoke_badge(
    db: AsyncSession, admin: User, user_id: uuid.UUID, badge_id: str,
) -> BadgeChangeResponse:
    user = await _get_user_with_badges(db, user_id)
    grant = next((g for g in user.special_badges if g.badge_id == badge_id), None)
    if grant is None:
        raise InvalidInputError("User does not have this badge")

    user.special_badges.remove(grant)
    await db.flush()
    logger.info("Admin %s revoked badge %s from user %s", admin.id, badge_id, user.id)

    return _badge_change_response(f"Badge revoked from {user.username}", user)
