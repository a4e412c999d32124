"""Leaderboard ranking and the champion achievement.

Both the public board and the champion check rank users by their *effective*
streak: a stored streak whose last qualifying day is older than yesterday
(UTC) counts as 0. Ties fall back to lifetime cards studied, then the longest
streak, then username.
"""
import json
import logging
import uuid
from datetime import datetime, time, timedelta, timezone

from redis.asyncio import Redis
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.core.achievements import CHAMPION_ID
from app.core.gamification_config import (
    CHAMPION_MIN_CARDS,
    CHAMPION_MIN_STREAK,
    LEADERBOARD_CACHE_KEY,
)
from app.core.timeutils import ensure_utc
from app.models.gamification import UserAchievement, UserStats
from app.models.user import User
from app.schemas.gamification import LeaderboardEntry
from app.services.gamification_service import (
    get_stats_for_update,
    get_unlocked_achievements,
)

logger = logging.getLogger(__name__)


def effective_streak(
    current_streak: int, last_study_date: datetime | None, now: datetime,
) -> int:
    """Stored streak, or 0 if more than one UTC day passed since the last study day."""
    last_study = ensure_utc(last_study_date)
    if last_study is None:
        return 0
    if (ensure_utc(now).date() - last_study.date()).days > 1:
        return 0
    return current_streak


def _effective_streak_expr(now: datetime):
    yesterday_start = datetime.combine(
        ensure_utc(now).date() - timedelta(days=1), time.min, tzinfo=timezone.utc,
    )
    return case(
        (UserStats.last_study_date >= yesterday_start, UserStats.current_streak),
        else_=0,
    )


def _ranking_query(now: datetime):
    effective = _effective_streak_expr(now).label("effective_streak")
    achievements_count = (
        select(func.count())
        .select_from(UserAchievement)
        .where(UserAchievement.user_id == UserStats.user_id)
        .scalar_subquery()
        .label("achievements_count")
    )
    return (
        select(
            UserStats.user_id,
            User.username,
            User.avatar_url,
            effective,
            UserStats.longest_streak,
            UserStats.total_cards_studied,
            achievements_count,
        )
        .join(User, User.id == UserStats.user_id)
        .where(User.is_active.is_(True))
        .order_by(
            effective.desc(),
            UserStats.total_cards_studied.desc(),
            UserStats.longest_streak.desc(),
            User.username.asc(),
        )
    )


async def _query_leaderboard(
    db: AsyncSession, limit: int, now: datetime,
) -> list[LeaderboardEntry]:
    result = await db.execute(_ranking_query(now).limit(limit))
    return [
        LeaderboardEntry(
            rank=idx,
            user_id=row.user_id,
            username=row.username,
            avatar_url=row.avatar_url,
            streak=row.effective_streak,
            longest_streak=row.longest_streak,
            cards_studied=row.total_cards_studied,
            achievements_count=row.achievements_count,
        )
        for idx, row in enumerate(result.all(), 1)
    ]


async def get_leaderboard(
    db: AsyncSession,
    redis: Redis,
    limit: int,
    now: datetime | None = None,
) -> list[LeaderboardEntry]:
    """Top users by effective streak. The full board is cached briefly in redis."""
    now = now or datetime.now(timezone.utc)

    cached = await redis.get(LEADERBOARD_CACHE_KEY)
    if cached is not None:
        entries = [LeaderboardEntry.model_validate(e) for e in json.loads(cached)]
        return entries[:limit]

    entries = await _query_leaderboard(db, settings.LEADERBOARD_MAX_LIMIT, now)
    await redis.set(
        LEADERBOARD_CACHE_KEY,
        json.dumps([e.model_dump(mode="json") for e in entries]),
        ex=settings.LEADERBOARD_CACHE_TTL_SECONDS,
    )
    return entries[:limit]


async def get_top_user_id(db: AsyncSession, now: datetime) -> uuid.UUID | None:
    result = await db.execute(_ranking_query(now).limit(1))
    row = result.first()
    return row.user_id if row else None


async def is_top_rank(db: AsyncSession, user_id: uuid.UUID, now: datetime) -> bool:
    return await get_top_user_id(db, now) == user_id


async def award_champion_if_top(
    db: AsyncSession, user_id: uuid.UUID, now: datetime,
) -> bool:
    """Unlock the champion achievement if the user currently ranks first."""
    stats = await get_stats_for_update(db, user_id)
    # Skip the cross-user query for users who cannot plausibly be on top
    if stats.current_streak <= CHAMPION_MIN_STREAK and stats.total_cards_studied <= CHAMPION_MIN_CARDS:
        return False

    unlocked = await get_unlocked_achievements(db, user_id)
    if CHAMPION_ID in unlocked:
        return False

    if not await is_top_rank(db, user_id, now):
        return False

    db.add(UserAchievement(user_id=user_id, achievement_id=CHAMPION_ID, unlocked_at=now))
    await db.flush()
    logger.info("User %s unlocked the champion achievement", user_id)
    return True


async def run_champion_check(
    session_factory: async_sessionmaker[AsyncSession],
    redis: Redis,
    user_id: uuid.UUID,
) -> None:
    """Post-response step of a review. Failures are logged, never raised."""
    try:
        async with session_factory() as db:
            await award_champion_if_top(db, user_id, datetime.now(timezone.utc))
            await db.commit()
        await redis.delete(LEADERBOARD_CACHE_KEY)
    except Exception:
        logger.exception("Background champion check failed for user %s", user_id)
