from app.models.user import User
from app.models.card import CardSet, Card
from app.models.progress import StudyProgress
from app.models.gamification import (
    UserStats,
    UserAchievement,
    SpecialBadgeGrant,
)

__all__ = [
    "User",
    "CardSet",
    "Card",
    "StudyProgress",
    "UserStats",
    "UserAchievement",
    "SpecialBadgeGrant",
]
