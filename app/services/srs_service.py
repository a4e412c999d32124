import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidInputError, NotFoundError
from app.core.gamification_config import (
    DEFAULT_EASE_FACTOR,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
)
from app.core.timeutils import ensure_utc
from app.models.progress import StudyProgress
from app.models.user import User
from app.schemas.srs import (
    DueCardResponse,
    DueCardsResponse,
    ReviewResponse,
    StudyOverviewResponse,
)
from app.services.card_service import get_card_set_or_public, list_set_cards
from app.services.gamification_service import (
    check_achievements,
    get_stats_for_update,
    to_unlock,
    track_card_studied,
)

logger = logging.getLogger(__name__)


# --- SM-2 Algorithm ---

@dataclass
class SM2Result:
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime


def calculate_sm2(
    ease_factor: float,
    interval: int,
    repetitions: int,
    quality: int,
    now: datetime,
) -> SM2Result:
    """SM-2 spaced repetition algorithm.

    Args:
        ease_factor: Current ease factor (>= 1.3).
        interval: Current interval in days.
        repetitions: Number of consecutive correct reviews.
        quality: Response quality (0-5).
        now: Review time; the next review is scheduled relative to it.

    Returns:
        SM2Result with updated values.

    Raises:
        ValueError: quality is outside 0-5.
    """
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}")

    if quality >= PASSING_QUALITY:
        # Correct response
        if repetitions == 0:
            new_interval = 1
        elif repetitions == 1:
            new_interval = 6
        else:
            # Half rounds up, not to even
            new_interval = math.floor(interval * ease_factor + 0.5)
        new_repetitions = repetitions + 1
    else:
        # Incorrect: start over
        new_interval = 1
        new_repetitions = 0

    new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(new_ef, MIN_EASE_FACTOR)

    return SM2Result(
        ease_factor=new_ef,
        interval=new_interval,
        repetitions=new_repetitions,
        next_review_date=now + timedelta(days=new_interval),
    )


# --- Progress store ---

def default_progress(
    user_id: uuid.UUID, set_id: uuid.UUID, card_index: int, now: datetime,
) -> StudyProgress:
    """Unsaved progress for a card the user has never reviewed; due immediately."""
    return StudyProgress(
        user_id=user_id,
        card_set_id=set_id,
        card_index=card_index,
        is_studied=False,
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=0,
        repetitions=0,
        next_review_date=now,
        last_review_date=None,
    )


async def get_progress_or_default(
    db: AsyncSession,
    user_id: uuid.UUID,
    set_id: uuid.UUID,
    card_index: int,
    now: datetime,
) -> StudyProgress:
    result = await db.execute(
        select(StudyProgress).where(
            StudyProgress.user_id == user_id,
            StudyProgress.card_set_id == set_id,
            StudyProgress.card_index == card_index,
        )
    )
    progress = result.scalar_one_or_none()
    if progress is None:
        return default_progress(user_id, set_id, card_index, now)
    return progress


async def _get_progress_for_update(
    db: AsyncSession, user_id: uuid.UUID, set_id: uuid.UUID, card_index: int,
) -> StudyProgress | None:
    result = await db.execute(
        select(StudyProgress)
        .where(
            StudyProgress.user_id == user_id,
            StudyProgress.card_set_id == set_id,
            StudyProgress.card_index == card_index,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


# --- Service functions ---

async def get_due_cards(
    db: AsyncSession,
    user: User,
    set_id: uuid.UUID,
    practice: bool = False,
) -> DueCardsResponse:
    """Cards of a set that are due now, never-reviewed cards included.

    If practice=True, returns ALL cards in the set regardless of SRS schedule.
    """
    card_set = await get_card_set_or_public(db, set_id, user)
    cards = await list_set_cards(db, card_set.id)
    now = datetime.now(timezone.utc)

    result = await db.execute(
        select(StudyProgress).where(
            StudyProgress.user_id == user.id,
            StudyProgress.card_set_id == card_set.id,
        )
    )
    progress_by_index = {p.card_index: p for p in result.scalars().all()}

    views: list[DueCardResponse] = []
    for index, card in enumerate(cards):
        progress = progress_by_index.get(index)
        next_review = ensure_utc(progress.next_review_date) if progress else now
        views.append(DueCardResponse(
            id=card.id,
            card_index=index,
            term=card.term,
            definition=card.definition,
            is_due=next_review <= now,
            is_new=progress is None,
            next_review_date=next_review,
        ))

    due = [v for v in views if v.is_due]
    return DueCardsResponse(
        set_title=card_set.title,
        total_cards=len(cards),
        due_count=len(due),
        cards=views if practice else due,
    )


async def submit_review(
    db: AsyncSession,
    user: User,
    set_id: uuid.UUID,
    card_index: int,
    quality: int,
    timezone_offset: int | None = None,
) -> ReviewResponse:
    """Apply one review to the card and the user's stats as a single unit of work."""
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidInputError(
            f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}"
        )

    card_set = await get_card_set_or_public(db, set_id, user)
    cards = await list_set_cards(db, card_set.id)
    if not 0 <= card_index < len(cards):
        raise NotFoundError("Card not found")

    now = datetime.now(timezone.utc)

    # Stats row first: it serializes concurrent reviews of the same user
    stats = await get_stats_for_update(db, user.id)

    progress = await _get_progress_for_update(db, user.id, card_set.id, card_index)
    if progress is None:
        progress = default_progress(user.id, card_set.id, card_index, now)
        db.add(progress)

    sm2 = calculate_sm2(
        ease_factor=progress.ease_factor,
        interval=progress.interval,
        repetitions=progress.repetitions,
        quality=quality,
        now=now,
    )
    progress.ease_factor = sm2.ease_factor
    progress.interval = sm2.interval
    progress.repetitions = sm2.repetitions
    progress.next_review_date = sm2.next_review_date
    progress.last_review_date = now

    if not progress.is_studied:
        progress.is_studied = True
        stats.total_cards_studied += 1

    if quality >= PASSING_QUALITY:
        stats.total_correct_answers += 1

    track_card_studied(stats, now, timezone_offset)

    newly_unlocked = await check_achievements(db, user.id, stats, now)

    await db.commit()

    logger.info(
        "Review user=%s set=%s card=%d quality=%d interval=%d today=%d streak=%d",
        user.id, card_set.id, card_index, quality, sm2.interval,
        stats.cards_studied_today, stats.current_streak,
    )

    return ReviewResponse(
        card_index=card_index,
        ease_factor=sm2.ease_factor,
        interval=sm2.interval,
        repetitions=sm2.repetitions,
        next_review_date=sm2.next_review_date,
        cards_studied_today=stats.cards_studied_today,
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        new_achievements=[to_unlock(rule) for rule in newly_unlocked],
    )


async def get_study_overview(db: AsyncSession, user: User) -> StudyOverviewResponse:
    now = datetime.now(timezone.utc)

    studied_result = await db.execute(
        select(func.count())
        .select_from(StudyProgress)
        .where(StudyProgress.user_id == user.id, StudyProgress.is_studied.is_(True))
    )
    due_result = await db.execute(
        select(func.count())
        .select_from(StudyProgress)
        .where(StudyProgress.user_id == user.id, StudyProgress.next_review_date <= now)
    )

    return StudyOverviewResponse(
        total_cards_studied=studied_result.scalar_one(),
        due_today=due_result.scalar_one(),
    )
