"""
Tests for leaderboard ranking, its redis cache and the champion check.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.core.achievements import CHAMPION_ID
from app.core.gamification_config import LEADERBOARD_CACHE_KEY
from app.models.gamification import UserAchievement, UserStats
from app.services.leaderboard_service import (
    award_champion_if_top,
    effective_streak,
    get_leaderboard,
    run_champion_check,
)
from tests.factories import make_stats, make_user

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


async def _champions(db, user_id) -> list[UserAchievement]:
    result = await db.execute(
        select(UserAchievement).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_id == CHAMPION_ID,
        )
    )
    return list(result.scalars().all())


class TestEffectiveStreak:

    def test_never_studied(self):
        assert effective_streak(0, None, NOW) == 0

    def test_studied_today(self):
        assert effective_streak(4, NOW - timedelta(hours=3), NOW) == 4

    def test_studied_yesterday(self):
        assert effective_streak(4, NOW - timedelta(days=1), NOW) == 4

    def test_gap_decays_to_zero(self):
        assert effective_streak(40, NOW - timedelta(days=2), NOW) == 0

    def test_naive_dates_are_utc(self):
        last = datetime(2026, 3, 9, 23, 59)
        assert effective_streak(4, last, NOW) == 4


class TestLeaderboardOrdering:

    async def test_ranks_by_effective_streak_then_tiebreakers(self, db, redis):
        alice = await make_user(db, "alice")
        bob = await make_user(db, "bob")
        carol = await make_user(db, "carol")
        dave = await make_user(db, "dave")
        await make_stats(db, alice, current_streak=5, longest_streak=5, total_cards_studied=40,
                         last_study_date=NOW - timedelta(days=1))
        # stale streak: counts as zero
        await make_stats(db, bob, current_streak=9, longest_streak=9, total_cards_studied=500,
                         last_study_date=NOW - timedelta(days=3))
        await make_stats(db, carol, current_streak=5, longest_streak=6, total_cards_studied=60,
                         last_study_date=NOW)
        await make_stats(db, dave, current_streak=0, longest_streak=2, total_cards_studied=500)

        board = await get_leaderboard(db, redis, limit=10, now=NOW)

        assert [e.username for e in board] == ["carol", "alice", "bob", "dave"]
        assert [e.rank for e in board] == [1, 2, 3, 4]
        assert board[2].streak == 0
        assert board[2].longest_streak == 9

    async def test_username_breaks_full_ties(self, db, redis):
        for name in ["zoe", "adam", "mia"]:
            user = await make_user(db, name)
            await make_stats(db, user, total_cards_studied=7)

        board = await get_leaderboard(db, redis, limit=10, now=NOW)

        assert [e.username for e in board] == ["adam", "mia", "zoe"]

    async def test_inactive_users_are_hidden(self, db, redis):
        active = await make_user(db, "active")
        hidden = await make_user(db, "hidden")
        hidden.is_active = False
        await db.commit()
        await make_stats(db, active, total_cards_studied=1)
        await make_stats(db, hidden, total_cards_studied=100)

        board = await get_leaderboard(db, redis, limit=10, now=NOW)

        assert [e.username for e in board] == ["active"]

    async def test_counts_achievements(self, db, redis):
        user = await make_user(db, "alice")
        await make_stats(db, user, total_cards_studied=1)
        db.add(UserAchievement(user_id=user.id, achievement_id="first_card", unlocked_at=NOW))
        await db.commit()

        board = await get_leaderboard(db, redis, limit=10, now=NOW)

        assert board[0].achievements_count == 1


class TestLeaderboardCache:

    async def test_cached_board_is_reused(self, db, redis):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, total_cards_studied=10)
        first = await get_leaderboard(db, redis, limit=10, now=NOW)

        bob = await make_user(db, "bob")
        await make_stats(db, bob, total_cards_studied=99)
        second = await get_leaderboard(db, redis, limit=10, now=NOW)

        assert [e.username for e in first] == ["alice"]
        assert second == first
        assert await redis.ttl(LEADERBOARD_CACHE_KEY) > 0

    async def test_limit_is_applied_to_cached_board(self, db, redis):
        for i in range(5):
            user = await make_user(db, f"user{i}")
            await make_stats(db, user, total_cards_studied=10 - i)

        top_two = await get_leaderboard(db, redis, limit=2, now=NOW)
        top_four = await get_leaderboard(db, redis, limit=4, now=NOW)

        assert [e.username for e in top_two] == ["user0", "user1"]
        assert [e.username for e in top_four] == ["user0", "user1", "user2", "user3"]

    async def test_invalidation_refreshes(self, db, redis):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, total_cards_studied=10)
        await get_leaderboard(db, redis, limit=10, now=NOW)

        bob = await make_user(db, "bob")
        await make_stats(db, bob, total_cards_studied=99)
        await redis.delete(LEADERBOARD_CACHE_KEY)
        board = await get_leaderboard(db, redis, limit=10, now=NOW)

        assert [e.username for e in board] == ["bob", "alice"]


class TestChampion:

    async def test_top_user_past_gate_is_awarded_once(self, db):
        alice = await make_user(db, "alice")
        bob = await make_user(db, "bob")
        await make_stats(db, alice, current_streak=4, longest_streak=4, last_study_date=NOW)
        await make_stats(db, bob, current_streak=1, longest_streak=1, last_study_date=NOW)

        assert await award_champion_if_top(db, alice.id, NOW) is True
        assert await award_champion_if_top(db, alice.id, NOW) is False
        assert len(await _champions(db, alice.id)) == 1

    async def test_gate_skips_low_activity_users(self, db):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, current_streak=3, longest_streak=3,
                         total_cards_studied=50, last_study_date=NOW)

        assert await award_champion_if_top(db, alice.id, NOW) is False
        assert await _champions(db, alice.id) == []

    async def test_card_count_alone_passes_gate(self, db):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, total_cards_studied=51)

        assert await award_champion_if_top(db, alice.id, NOW) is True

    async def test_not_awarded_below_first_place(self, db):
        alice = await make_user(db, "alice")
        bob = await make_user(db, "bob")
        await make_stats(db, alice, current_streak=4, longest_streak=4, last_study_date=NOW)
        await make_stats(db, bob, current_streak=8, longest_streak=8, last_study_date=NOW)

        assert await award_champion_if_top(db, alice.id, NOW) is False
        assert await _champions(db, alice.id) == []

    async def test_decayed_streak_does_not_win(self, db):
        alice = await make_user(db, "alice")
        bob = await make_user(db, "bob")
        await make_stats(db, alice, current_streak=4, longest_streak=4, last_study_date=NOW)
        await make_stats(db, bob, current_streak=30, longest_streak=30,
                         last_study_date=NOW - timedelta(days=5))

        assert await award_champion_if_top(db, bob.id, NOW) is False
        assert await award_champion_if_top(db, alice.id, NOW) is True


class TestRunChampionCheck:

    async def test_commits_and_invalidates_cache(self, db, session_factory, redis):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, current_streak=5, longest_streak=5,
                         last_study_date=datetime.now(timezone.utc))
        await redis.set(LEADERBOARD_CACHE_KEY, "[]")

        await run_champion_check(session_factory, redis, alice.id)

        async with session_factory() as fresh:
            assert len(await _champions(fresh, alice.id)) == 1
        assert await redis.get(LEADERBOARD_CACHE_KEY) is None

    async def test_failures_are_logged_not_raised(self, redis, caplog):
        def broken_factory():
            raise RuntimeError("database is down")

        with caplog.at_level(logging.ERROR, logger="app.services.leaderboard_service"):
            await run_champion_check(broken_factory, redis, "some-user")

        assert "Background champion check failed" in caplog.text
        assert "database is down" in caplog.text


class TestRankingSchema:

    def test_no_index_on_raw_streak(self):
        # Ranking sorts on a CASE over last_study_date, never on the stored streak alone
        indexed = {col.name for index in UserStats.__table__.indexes for col in index.columns}

        assert "current_streak" not in indexed
