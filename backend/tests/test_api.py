import unittest

from httpx import ASGITransport, AsyncClient

from backend.app.core.database import get_db
from backend.app.main import app
from backend.tests.helpers import DatabaseTestCase


class ApiTestCase(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()

        async def override_get_db():
            async with self.SessionLocal() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        self.client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self):
        await self.client.aclose()
        app.dependency_overrides.clear()
        await super().asyncTearDown()

    async def create_open_tournament(self, names, max_players=8) -> int:
        res = await self.client.post("/tournament/create", json={"name": "Stream Cup", "max_players": max_players})
        self.assertEqual(res.status_code, 200)
        tournament_id = res.json()["id"]

        res = await self.client.post(f"/tournament/{tournament_id}/status", json={"status": "registration"})
        self.assertEqual(res.status_code, 200)

        for name in names:
            res = await self.client.post(f"/tournament/{tournament_id}/players", json={"username": name})
            self.assertEqual(res.status_code, 200, res.text)
        return tournament_id


class TestTournamentApi(ApiTestCase):
    async def test_create_and_fetch(self):
        tournament_id = await self.create_open_tournament(["Alpha", "Bravo"])

        res = await self.client.get(f"/tournament/{tournament_id}")
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual(body["status"], "registration")
        self.assertEqual([p["affiliate_username"] for p in body["players"]], ["alpha", "bravo"])
        self.assertEqual(body["matches_total"], 0)

        res = await self.client.get("/tournament/current")
        self.assertEqual(res.json()["id"], tournament_id)

    async def test_current_is_null_without_active_tournament(self):
        res = await self.client.get("/tournament/current")
        self.assertEqual(res.status_code, 200)
        self.assertIsNone(res.json())

    async def test_duplicate_player_is_conflict(self):
        tournament_id = await self.create_open_tournament(["Alpha"])
        res = await self.client.post(f"/tournament/{tournament_id}/players", json={"username": "ALPHA"})
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.json()["type"], "DuplicatePlayerError")

    async def test_engine_states_cannot_be_set_directly(self):
        tournament_id = await self.create_open_tournament([])
        res = await self.client.post(f"/tournament/{tournament_id}/status", json={"status": "live"})
        self.assertEqual(res.status_code, 422)

    async def test_missing_tournament_is_404(self):
        res = await self.client.get("/tournament/999")
        self.assertEqual(res.status_code, 404)


class TestBracketApi(ApiTestCase):
    async def test_full_tournament_over_http(self):
        tournament_id = await self.create_open_tournament(["A", "B", "C"])

        res = await self.client.post(f"/bracket/{tournament_id}/generate")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["total_rounds"], 2)
        self.assertEqual(res.json()["status"], "live")

        res = await self.client.post(f"/bracket/{tournament_id}/generate")
        self.assertEqual(res.status_code, 409)

        bracket = (await self.client.get(f"/bracket/{tournament_id}")).json()
        self.assertEqual([r["name"] for r in bracket["rounds"]], ["Semi-Finals", "Finals"])
        first, bye = bracket["rounds"][0]["matches"]
        self.assertEqual((first["player1_name"], first["player2_name"]), ("A", "B"))
        self.assertTrue(bye["is_bye"])

        res = await self.client.post(f"/bracket/{tournament_id}/byes")
        self.assertEqual(res.json()["resolved"], [bye["id"]])

        res = await self.client.post(f"/bracket/matches/{first['id']}/start")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["status"], "in_progress")

        res = await self.client.post(
            f"/bracket/matches/{first['id']}/score",
            json={"player1_score": 4.0, "player2_score": 4.0},
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["winner_id"], first["player2_id"])

        final = (await self.client.get(f"/bracket/{tournament_id}")).json()["rounds"][1]["matches"][0]
        self.assertEqual((final["player1_name"], final["player2_name"]), ("B", "C"))

        res = await self.client.post(
            f"/bracket/matches/{final['id']}/score",
            json={"player1_score": 25.0, "player2_score": 1.5},
        )
        self.assertTrue(res.json()["tournament_completed"])

        res = await self.client.post(
            f"/bracket/matches/{final['id']}/score",
            json={"player1_score": 1.0, "player2_score": 2.0},
        )
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.json()["type"], "MatchAlreadyCompletedError")

        stats = (await self.client.get(f"/stats/tournament/{tournament_id}")).json()
        self.assertEqual(stats["status"], "completed")
        self.assertEqual(stats["champion"], "B")
        self.assertEqual(stats["matches_completed"], 3)
        self.assertEqual(stats["players_remaining"], 1)
        self.assertEqual(stats["top_multiplier"], 25.0)

        winners = (await self.client.get("/stats/winners")).json()
        self.assertEqual([(w["username"], w["win_count"]) for w in winners], [("b", 1)])

    async def test_generate_with_one_player_is_rejected(self):
        tournament_id = await self.create_open_tournament(["lonely"])
        res = await self.client.post(f"/bracket/{tournament_id}/generate")
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json()["type"], "InsufficientPlayersError")

    async def test_negative_scores_rejected(self):
        tournament_id = await self.create_open_tournament(["A", "B"])
        await self.client.post(f"/bracket/{tournament_id}/generate")
        match = (await self.client.get(f"/bracket/{tournament_id}")).json()["rounds"][0]["matches"][0]

        res = await self.client.post(
            f"/bracket/matches/{match['id']}/score",
            json={"player1_score": -1, "player2_score": 2},
        )
        self.assertEqual(res.status_code, 422)

    async def test_unready_match_is_conflict(self):
        tournament_id = await self.create_open_tournament(["A", "B", "C", "D"])
        await self.client.post(f"/bracket/{tournament_id}/generate")
        final = (await self.client.get(f"/bracket/{tournament_id}")).json()["rounds"][1]["matches"][0]

        res = await self.client.post(
            f"/bracket/matches/{final['id']}/score",
            json={"player1_score": 1, "player2_score": 2},
        )
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.json()["type"], "MatchNotReadyError")


class TestAdminApi(ApiTestCase):
    async def test_status_and_reset(self):
        await self.create_open_tournament(["A", "B"])

        counts = (await self.client.get("/admin/status")).json()
        self.assertEqual(counts, {"tournaments": 1, "players": 2, "matches": 0, "winners": 0})

        res = await self.client.delete("/admin/reset", params={"confirmation": "nope"})
        self.assertEqual(res.status_code, 400)

        res = await self.client.delete(
            "/admin/reset", params={"confirmation": "I-UNDERSTAND-THIS-DELETES-EVERYTHING"}
        )
        self.assertEqual(res.status_code, 200)
        counts = (await self.client.get("/admin/status")).json()
        self.assertEqual(counts["tournaments"], 0)
        self.assertEqual(counts["players"], 0)


if __name__ == '__main__':
    unittest.main()
