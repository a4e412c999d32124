"""
Tests for the stats, achievements, leaderboard and quest endpoints.
"""

from datetime import datetime, timedelta, timezone

from app.core.achievements import ACHIEVEMENTS, SPECIAL_BADGES
from app.models.gamification import SpecialBadgeGrant
from tests.factories import auth_headers, make_stats, make_user


class TestMyStats:

    async def test_fresh_user_has_zero_stats(self, client, db):
        alice = await make_user(db, "alice")

        response = await client.get("/api/v1/stats/me", headers=auth_headers(alice))

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["stats"]["total_cards_studied"] == 0
        assert data["stats"]["last_study_date"] is None
        assert data["effective_streak"] == 0
        assert data["achievements_count"] == 0
        assert data["total_achievements"] == len(ACHIEVEMENTS)
        assert data["total_special_badges"] == len(SPECIAL_BADGES)

    async def test_effective_streak_decays(self, client, db):
        alice = await make_user(db, "alice")
        await make_stats(
            db, alice, current_streak=6, longest_streak=6,
            last_study_date=datetime.now(timezone.utc) - timedelta(days=4),
        )

        data = (await client.get("/api/v1/stats/me", headers=auth_headers(alice))).json()

        assert data["stats"]["current_streak"] == 6
        assert data["effective_streak"] == 0


class TestAchievementsEndpoint:

    async def test_lists_locked_and_unlocked(self, client, db):
        alice = await make_user(db, "alice")
        await client.post("/api/v1/stats/claim-quest", headers=auth_headers(alice))

        response = await client.get("/api/v1/stats/achievements", headers=auth_headers(alice))

        assert response.status_code == 200
        data = response.json()
        unlocked = [a["id"] for a in data["achievements"] if a["unlocked"]]
        assert unlocked == ["newcomer"]
        assert "champion" in [a["id"] for a in data["achievements"]]
        assert [b["id"] for b in data["special_badges"]] == list(SPECIAL_BADGES)


class TestClaimQuest:

    async def test_claim_then_claim_again(self, client, db):
        alice = await make_user(db, "alice")

        first = await client.post("/api/v1/stats/claim-quest", headers=auth_headers(alice))
        second = await client.post("/api/v1/stats/claim-quest", headers=auth_headers(alice))

        assert first.status_code == 200
        assert first.json()["unlocked"] is True
        assert first.json()["message"] == "Achievement granted"
        assert first.json()["badge"]["id"] == "newcomer"
        assert second.status_code == 200
        assert second.json()["unlocked"] is True
        assert second.json()["message"] == "Achievement already owned"

        me = (await client.get("/api/v1/stats/me", headers=auth_headers(alice))).json()
        assert me["achievements_count"] == 1


class TestQuiz:

    async def test_records_quiz_and_unlocks(self, client, db):
        alice = await make_user(db, "alice")

        response = await client.post(
            "/api/v1/stats/quiz", json={"correct_answers": 7}, headers=auth_headers(alice),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_quizzes_taken"] == 1
        assert data["total_correct_answers"] == 7
        assert [a["id"] for a in data["new_achievements"]] == ["quiz_first"]

    async def test_negative_answers_rejected(self, client, db):
        alice = await make_user(db, "alice")

        response = await client.post(
            "/api/v1/stats/quiz", json={"correct_answers": -1}, headers=auth_headers(alice),
        )

        assert response.status_code == 422


class TestLeaderboardEndpoint:

    async def test_returns_ranked_entries(self, client, db):
        now = datetime.now(timezone.utc)
        alice = await make_user(db, "alice")
        bob = await make_user(db, "bob")
        await make_stats(db, alice, current_streak=2, longest_streak=2, last_study_date=now)
        await make_stats(db, bob, current_streak=4, longest_streak=4, last_study_date=now)

        response = await client.get("/api/v1/stats/leaderboard", headers=auth_headers(alice))

        assert response.status_code == 200
        data = response.json()
        assert [(e["rank"], e["username"], e["streak"]) for e in data] == [
            (1, "bob", 4), (2, "alice", 2),
        ]

    async def test_claim_refreshes_cached_counts(self, client, db):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, total_cards_studied=3)

        before = (await client.get("/api/v1/stats/leaderboard", headers=auth_headers(alice))).json()
        await client.post("/api/v1/stats/claim-quest", headers=auth_headers(alice))
        after = (await client.get("/api/v1/stats/leaderboard", headers=auth_headers(alice))).json()

        assert before[0]["achievements_count"] == 0
        assert after[0]["achievements_count"] == 1

    async def test_quiz_unlock_refreshes_cached_counts(self, client, db):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, total_cards_studied=3)

        await client.get("/api/v1/stats/leaderboard", headers=auth_headers(alice))
        await client.post(
            "/api/v1/stats/quiz", json={"correct_answers": 4}, headers=auth_headers(alice),
        )
        board = (await client.get("/api/v1/stats/leaderboard", headers=auth_headers(alice))).json()

        assert board[0]["achievements_count"] == 1

    async def test_limit_bounds(self, client, db):
        alice = await make_user(db, "alice")

        too_small = await client.get(
            "/api/v1/stats/leaderboard", params={"limit": 0}, headers=auth_headers(alice),
        )
        too_large = await client.get(
            "/api/v1/stats/leaderboard", params={"limit": 1000}, headers=auth_headers(alice),
        )

        assert too_small.status_code == 422
        assert too_large.status_code == 422


class TestPublicProfile:

    async def test_shows_only_unlocked(self, client, db):
        alice = await make_user(db, "alice")
        await make_stats(db, alice, total_cards_studied=12)
        db.add(SpecialBadgeGrant(
            user_id=alice.id, badge_id="founder", granted_at=datetime.now(timezone.utc),
        ))
        await db.commit()
        await client.post("/api/v1/stats/claim-quest", headers=auth_headers(alice))

        response = await client.get("/api/v1/stats/user/alice")

        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["total_cards_studied"] == 12
        assert [a["id"] for a in data["achievements"]] == ["newcomer"]
        assert [b["id"] for b in data["special_badges"]] == ["founder"]

    async def test_unknown_user(self, client):
        response = await client.get("/api/v1/stats/user/nobody")

        assert response.status_code == 404
