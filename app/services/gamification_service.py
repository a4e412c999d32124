import logging
import uuid
from datetime import datetime, timezone

from redis.asyncio import Redis
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.achievements import (
    ACHIEVEMENTS,
    CHAMPION,
    NEWCOMER_ID,
    SPECIAL_BADGES,
    AchievementRule,
)
from app.core.exceptions import NotFoundError
from app.core.gamification_config import LEADERBOARD_CACHE_KEY, STREAK_DAILY_CARD_GOAL
from app.core.timeutils import days_between, ensure_utc, local_day
from app.models.gamification import SpecialBadgeGrant, UserAchievement, UserStats
from app.models.user import User
from app.schemas.gamification import (
    AchievementStatus,
    AchievementStatusResponse,
    ClaimQuestResponse,
    MyStatsResponse,
    PublicProfileResponse,
    QuizResultResponse,
    SpecialBadgeStatus,
    UserStatsResponse,
)
from app.schemas.srs import AchievementUnlock

logger = logging.getLogger(__name__)

# INSERT ... ON CONFLICT DO NOTHING per backend (asyncpg in production, aiosqlite in tests)
_CONFLICT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


# --- Streak tracking ---

def track_card_studied(
    stats: UserStats, now: datetime, timezone_offset: int | None = None,
) -> None:
    """Count one studied card towards today and update the streak at the goal."""
    last_card = ensure_utc(stats.last_card_date)
    if last_card is not None and local_day(last_card, timezone_offset) == local_day(now, timezone_offset):
        stats.cards_studied_today += 1
    else:
        # New local day: yesterday's counter and latch are stale
        stats.cards_studied_today = 1
        stats.streak_updated_today = False

    stats.last_card_date = now

    if stats.cards_studied_today >= STREAK_DAILY_CARD_GOAL and not stats.streak_updated_today:
        update_streak_day(stats, now, timezone_offset)
        stats.streak_updated_today = True


def update_streak_day(
    stats: UserStats, now: datetime, timezone_offset: int | None = None,
) -> None:
    """Record that ``now``'s local day reached the daily goal."""
    last_study = ensure_utc(stats.last_study_date)
    if last_study is None:
        stats.current_streak = 1
        stats.longest_streak = max(stats.longest_streak, 1)
    else:
        diff = days_between(last_study, now, timezone_offset)
        if diff == 1:
            stats.current_streak += 1
            stats.longest_streak = max(stats.longest_streak, stats.current_streak)
        elif diff > 1:
            stats.current_streak = 1
        # diff == 0: today is already counted

    stats.last_study_date = now


# --- Achievements ---

def evaluate_achievements(unlocked: set[str], stats: UserStats) -> list[AchievementRule]:
    """Return rules newly satisfied by ``stats`` and add their ids to ``unlocked``."""
    newly_unlocked: list[AchievementRule] = []
    for achievement_id, rule in ACHIEVEMENTS.items():
        if achievement_id in unlocked:
            continue
        if rule.check(stats):
            unlocked.add(achievement_id)
            newly_unlocked.append(rule)
    return newly_unlocked


def to_unlock(rule: AchievementRule) -> AchievementUnlock:
    return AchievementUnlock(
        id=rule.id, title=rule.title, description=rule.description, icon=rule.icon,
    )


async def get_unlocked_achievements(
    db: AsyncSession, user_id: uuid.UUID,
) -> dict[str, UserAchievement]:
    result = await db.execute(
        select(UserAchievement).where(UserAchievement.user_id == user_id)
    )
    return {ua.achievement_id: ua for ua in result.scalars().all()}


async def check_achievements(
    db: AsyncSession,
    user_id: uuid.UUID,
    stats: UserStats,
    now: datetime,
) -> list[AchievementRule]:
    """Persist every achievement ``stats`` newly qualifies for."""
    unlocked = set(await get_unlocked_achievements(db, user_id))
    newly_unlocked = evaluate_achievements(unlocked, stats)
    for rule in newly_unlocked:
        db.add(UserAchievement(user_id=user_id, achievement_id=rule.id, unlocked_at=now))

    if newly_unlocked:
        await db.flush()
        logger.info(
            "User %s unlocked achievements: %s",
            user_id, ", ".join(rule.id for rule in newly_unlocked),
        )
    return newly_unlocked


# --- Stats rows ---

async def get_stats(db: AsyncSession, user_id: uuid.UUID) -> UserStats | None:
    result = await db.execute(select(UserStats).where(UserStats.user_id == user_id))
    return result.scalar_one_or_none()


async def _insert_stats_if_missing(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Create an all-zero stats row unless one exists. Safe under concurrent callers."""
    insert = _CONFLICT_INSERTS[db.get_bind().dialect.name]
    await db.execute(
        insert(UserStats)
        .values(id=uuid.uuid4(), user_id=user_id)
        .on_conflict_do_nothing(index_elements=[UserStats.user_id])
    )


async def get_stats_for_update(db: AsyncSession, user_id: uuid.UUID) -> UserStats:
    """Lock the user's stats row for the rest of the transaction, creating it if needed."""
    locked = select(UserStats).where(UserStats.user_id == user_id).with_for_update()

    stats = (await db.execute(locked)).scalar_one_or_none()
    if stats is None:
        # A concurrent first write may create the row between the select and here
        await _insert_stats_if_missing(db, user_id)
        stats = (await db.execute(locked)).scalar_one()
    return stats


def _empty_stats() -> UserStatsResponse:
    return UserStatsResponse(
        total_cards_studied=0,
        total_quizzes_taken=0,
        total_correct_answers=0,
        current_streak=0,
        longest_streak=0,
        last_study_date=None,
        cards_studied_today=0,
    )


# --- Service functions ---

async def claim_quest(db: AsyncSession, redis: Redis, user: User) -> ClaimQuestResponse:
    """Grant the newcomer quest achievement. Claiming again is a no-op success."""
    await get_stats_for_update(db, user.id)
    unlocked = await get_unlocked_achievements(db, user.id)
    rule = ACHIEVEMENTS[NEWCOMER_ID]

    if NEWCOMER_ID in unlocked:
        return ClaimQuestResponse(
            unlocked=True, message="Achievement already owned", badge=to_unlock(rule),
        )

    db.add(UserAchievement(
        user_id=user.id,
        achievement_id=NEWCOMER_ID,
        unlocked_at=datetime.now(timezone.utc),
    ))
    await db.commit()
    await redis.delete(LEADERBOARD_CACHE_KEY)
    logger.info("User %s claimed the newcomer quest", user.id)
    return ClaimQuestResponse(
        unlocked=True, message="Achievement granted", badge=to_unlock(rule),
    )


async def record_quiz_result(
    db: AsyncSession, redis: Redis, user: User, correct_answers: int,
) -> QuizResultResponse:
    now = datetime.now(timezone.utc)
    stats = await get_stats_for_update(db, user.id)
    stats.total_quizzes_taken += 1
    stats.total_correct_answers += correct_answers

    newly_unlocked = await check_achievements(db, user.id, stats, now)
    await db.commit()
    if newly_unlocked:
        # Cached board carries achievement counts
        await redis.delete(LEADERBOARD_CACHE_KEY)

    return QuizResultResponse(
        total_quizzes_taken=stats.total_quizzes_taken,
        total_correct_answers=stats.total_correct_answers,
        new_achievements=[to_unlock(rule) for rule in newly_unlocked],
    )


def _achievement_statuses(unlocked: dict[str, UserAchievement]) -> list[AchievementStatus]:
    statuses = []
    for info in [*ACHIEVEMENTS.values(), CHAMPION]:
        ua = unlocked.get(info.id)
        statuses.append(
            AchievementStatus(
                id=info.id,
                title=info.title,
                description=info.description,
                icon=info.icon,
                unlocked=ua is not None,
                unlocked_at=ua.unlocked_at if ua else None,
            )
        )
    return statuses


async def _special_badge_statuses(
    db: AsyncSession, user_id: uuid.UUID,
) -> list[SpecialBadgeStatus]:
    result = await db.execute(
        select(SpecialBadgeGrant).where(SpecialBadgeGrant.user_id == user_id)
    )
    grants = {g.badge_id: g for g in result.scalars().all()}

    return [
        SpecialBadgeStatus(
            id=badge.id,
            title=badge.title,
            description=badge.description,
            icon=badge.icon,
            unlocked=badge.id in grants,
            granted_at=grants[badge.id].granted_at if badge.id in grants else None,
        )
        for badge in SPECIAL_BADGES.values()
    ]


async def get_achievement_status(
    db: AsyncSession, user_id: uuid.UUID,
) -> AchievementStatusResponse:
    """All achievements and special badges with the user's unlock state."""
    unlocked = await get_unlocked_achievements(db, user_id)
    return AchievementStatusResponse(
        achievements=_achievement_statuses(unlocked),
        special_badges=await _special_badge_statuses(db, user_id),
    )


async def get_my_stats(db: AsyncSession, user: User) -> MyStatsResponse:
    from app.services.leaderboard_service import effective_streak

    stats = await get_stats(db, user.id)
    achievements_count = (
        await db.execute(
            select(func.count())
            .select_from(UserAchievement)
            .where(UserAchievement.user_id == user.id)
        )
    ).scalar_one()
    badges_count = (
        await db.execute(
            select(func.count())
            .select_from(SpecialBadgeGrant)
            .where(SpecialBadgeGrant.user_id == user.id)
        )
    ).scalar_one()

    return MyStatsResponse(
        username=user.username,
        avatar_url=user.avatar_url,
        stats=UserStatsResponse.model_validate(stats) if stats else _empty_stats(),
        effective_streak=(
            effective_streak(stats.current_streak, stats.last_study_date, datetime.now(timezone.utc))
            if stats else 0
        ),
        achievements_count=achievements_count,
        total_achievements=len(ACHIEVEMENTS),
        special_badges_count=badges_count,
        total_special_badges=len(SPECIAL_BADGES),
        member_since=user.created_at,
    )


async def get_public_profile(db: AsyncSession, username: str) -> PublicProfileResponse:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")

    stats = await get_stats(db, user.id)
    unlocked = await get_unlocked_achievements(db, user.id)
    badges = await _special_badge_statuses(db, user.id)

    return PublicProfileResponse(
        username=user.username,
        avatar_url=user.avatar_url,
        stats=UserStatsResponse.model_validate(stats) if stats else _empty_stats(),
        achievements=[a for a in _achievement_statuses(unlocked) if a.unlocked],
        special_badges=[b for b in badges if b.unlocked],
        member_since=user.created_at,
    )
