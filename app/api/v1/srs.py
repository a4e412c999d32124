import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_current_user, get_redis, get_session_factory
from app.database import get_db
from app.models.user import User
from app.schemas.srs import (
    DueCardsResponse,
    ReviewRequest,
    ReviewResponse,
    StudyOverviewResponse,
)
from app.services.leaderboard_service import run_champion_check
from app.services.srs_service import (
    get_due_cards,
    get_study_overview,
    submit_review,
)

router = APIRouter(prefix="/study", tags=["study"])


@router.get("/stats/overview", response_model=StudyOverviewResponse)
async def get_study_overview_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_study_overview(db, current_user)


@router.get("/sets/{set_id}", response_model=DueCardsResponse)
async def get_due_cards_endpoint(
    set_id: uuid.UUID,
    practice: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_due_cards(db, current_user, set_id, practice=practice)


@router.post("/sets/{set_id}/review", response_model=ReviewResponse)
async def submit_review_endpoint(
    set_id: uuid.UUID,
    data: ReviewRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    response = await submit_review(
        db, current_user, set_id, data.card_index, data.quality, data.timezone_offset,
    )
    # Cross-user ranking runs after the response is sent
    background_tasks.add_task(run_champion_check, session_factory, redis, current_user.id)
    return response
