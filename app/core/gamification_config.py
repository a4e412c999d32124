# SM-2 defaults for a card that has never been reviewed
DEFAULT_EASE_FACTOR: float = 2.5
MIN_EASE_FACTOR: float = 1.3
PASSING_QUALITY: int = 3
MIN_QUALITY: int = 0
MAX_QUALITY: int = 5

# A day counts towards the streak once this many cards were studied that local day
STREAK_DAILY_CARD_GOAL: int = 10

# The champion check only runs for users past one of these gates
CHAMPION_MIN_STREAK: int = 3
CHAMPION_MIN_CARDS: int = 50

# Leaderboard
LEADERBOARD_DEFAULT_LIMIT: int = 20
LEADERBOARD_CACHE_KEY: str = "leaderboard:top"
