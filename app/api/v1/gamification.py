from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_redis
from app.config import settings
from app.core.gamification_config import LEADERBOARD_DEFAULT_LIMIT
from app.database import get_db
from app.models.user import User
from app.schemas.gamification import (
    AchievementStatusResponse,
    ClaimQuestResponse,
    LeaderboardEntry,
    MyStatsResponse,
    PublicProfileResponse,
    QuizResultRequest,
    QuizResultResponse,
)
from app.services.gamification_service import (
    claim_quest,
    get_achievement_status,
    get_my_stats,
    get_public_profile,
    record_quiz_result,
)
from app.services.leaderboard_service import get_leaderboard

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/me", response_model=MyStatsResponse)
async def get_my_stats_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_my_stats(db, current_user)


@router.get("/achievements", response_model=AchievementStatusResponse)
async def get_achievements(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_achievement_status(db, current_user.id)


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard_endpoint(
    limit: int = Query(LEADERBOARD_DEFAULT_LIMIT, ge=1, le=settings.LEADERBOARD_MAX_LIMIT),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    return await get_leaderboard(db, redis, limit)


@router.get("/user/{username}", response_model=PublicProfileResponse)
async def get_public_profile_endpoint(
    username: str,
    db: AsyncSession = Depends(get_db),
):
    return await get_public_profile(db, username)


@router.post("/claim-quest", response_model=ClaimQuestResponse)
async def claim_quest_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    return await claim_quest(db, redis, current_user)


@router.post("/quiz", response_model=QuizResultResponse)
async def record_quiz_endpoint(
    data: QuizResultRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
):
    return await record_quiz_result(db, redis, current_user, data.correct_answers)
