import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.srs import AchievementUnlock


class AchievementStatus(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool
    unlocked_at: datetime | None = None


class SpecialBadgeStatus(BaseModel):
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool
    granted_at: datetime | None = None


class AchievementStatusResponse(BaseModel):
    achievements: list[AchievementStatus]
    special_badges: list[SpecialBadgeStatus]


class ClaimQuestResponse(BaseModel):
    success: bool = True
    unlocked: bool
    message: str
    badge: AchievementUnlock


class UserStatsResponse(BaseModel):
    total_cards_studied: int
    total_quizzes_taken: int
    total_correct_answers: int
    current_streak: int
    longest_streak: int
    last_study_date: datetime | None
    cards_studied_today: int

    model_config = {"from_attributes": True}


class MyStatsResponse(BaseModel):
    username: str
    avatar_url: str | None
    stats: UserStatsResponse
    effective_streak: int
    achievements_count: int
    total_achievements: int
    special_badges_count: int
    total_special_badges: int
    member_since: datetime


class PublicProfileResponse(BaseModel):
    username: str
    avatar_url: str | None
    stats: UserStatsResponse
    achievements: list[AchievementStatus]
    special_badges: list[SpecialBadgeStatus]
    member_since: datetime


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: uuid.UUID
    username: str
    avatar_url: str | None
    streak: int
    longest_streak: int
    cards_studied: int
    achievements_count: int


class QuizResultRequest(BaseModel):
    correct_answers: int = Field(0, ge=0, le=1000)


class QuizResultResponse(BaseModel):
    total_quizzes_taken: int
    total_correct_answers: int
    new_achievements: list[AchievementUnlock] = []
