"""Static achievement and special badge catalogs.

Achievements unlock automatically from a user's stats. The ``newcomer``
quest can only be claimed explicitly and ``champion`` is granted by the
leaderboard check, so neither appears as a threshold rule. Special badges
are granted by administrators and never touch the achievement tables.
"""
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

NEWCOMER_ID = "newcomer"
CHAMPION_ID = "champion"


@dataclass(frozen=True)
class AchievementRule:
    id: str
    title: str
    description: str
    icon: str
    check: Callable[[Any], bool]


@dataclass(frozen=True)
class BadgeInfo:
    id: str
    title: str
    description: str
    icon: str


def _never(stats: Any) -> bool:
    return False


def _at_least(field: str, value: int) -> Callable[[Any], bool]:
    def check(stats: Any) -> bool:
        return (getattr(stats, field, 0) or 0) >= value
    return check


def _build_registry(rules: list[AchievementRule]) -> Mapping[str, AchievementRule]:
    registry = {rule.id: rule for rule in rules}
    if len(registry) != len(rules):
        raise ValueError("Duplicate achievement id in registry")
    if CHAMPION_ID in registry:
        raise ValueError("champion is awarded by the leaderboard check")
    return MappingProxyType(registry)


ACHIEVEMENTS: Mapping[str, AchievementRule] = _build_registry([
    AchievementRule(NEWCOMER_ID, "Newcomer", "Complete the newcomer quest", "🚀", _never),
    # card milestones
    AchievementRule("first_card", "First Steps", "Study your first card", "🎯", _at_least("total_cards_studied", 1)),
    AchievementRule("cards_10", "Getting Started", "Study 10 cards", "📚", _at_least("total_cards_studied", 10)),
    AchievementRule("cards_50", "Card Collector", "Study 50 cards", "🃏", _at_least("total_cards_studied", 50)),
    AchievementRule("cards_100", "Card Master", "Study 100 cards", "👑", _at_least("total_cards_studied", 100)),
    AchievementRule("cards_500", "Card Legend", "Study 500 cards", "🏆", _at_least("total_cards_studied", 500)),
    # streaks
    AchievementRule("streak_3", "On Fire", "Study 3 days in a row", "🔥", _at_least("longest_streak", 3)),
    AchievementRule("streak_7", "Week Warrior", "Study 7 days in a row", "⚔️", _at_least("longest_streak", 7)),
    AchievementRule("streak_30", "Dedicated Learner", "Study 30 days in a row", "💎", _at_least("longest_streak", 30)),
    # quizzes
    AchievementRule("quiz_first", "Quiz Taker", "Finish your first quiz", "✏️", _at_least("total_quizzes_taken", 1)),
    AchievementRule("quiz_10", "Quiz Master", "Finish 10 quizzes", "🎓", _at_least("total_quizzes_taken", 10)),
])

CHAMPION = BadgeInfo(CHAMPION_ID, "Champion", "Hold the top spot on the leaderboard", "🥇")

SPECIAL_BADGES: Mapping[str, BadgeInfo] = MappingProxyType({
    "founder": BadgeInfo("founder", "Founder", "Founded the project", "⭐"),
    "beta_tester": BadgeInfo("beta_tester", "Beta Tester", "One of the first testers", "🧪"),
    "contributor": BadgeInfo("contributor", "Contributor", "Contributed to the project", "💝"),
})
