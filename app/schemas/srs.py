import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ReviewRequest(BaseModel):
    card_index: int
    # 0-5 is enforced by the service so every bad score gets the same 400
    quality: int
    # Minutes to subtract from UTC to get the client's local time (UTC+7 = -420)
    timezone_offset: int | None = Field(None, ge=-840, le=840)


class AchievementUnlock(BaseModel):
    id: str
    title: str
    description: str
    icon: str

    model_config = {"from_attributes": True}


class DueCardResponse(BaseModel):
    id: uuid.UUID
    card_index: int
    term: str
    definition: str
    is_due: bool
    is_new: bool
    next_review_date: datetime


class DueCardsResponse(BaseModel):
    set_title: str
    total_cards: int
    due_count: int
    cards: list[DueCardResponse]


class ReviewResponse(BaseModel):
    message: str = "Review recorded"
    card_index: int
    ease_factor: float
    interval: int
    repetitions: int
    next_review_date: datetime
    cards_studied_today: int
    current_streak: int
    longest_streak: int
    new_achievements: list[AchievementUnlock] = []


class StudyOverviewResponse(BaseModel):
    total_cards_studied: int
    due_today: int
