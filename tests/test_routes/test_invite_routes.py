"""Integration tests for invite route handlers.

Tests the full HTTP stack using HTTPX AsyncClient with the FastAPI app
and mongomock-motor (no real MongoDB required).
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

import pytest
import pytest_asyncio


HOST = ("host-1", "Hannah")
BOB = ("user-bob", "Bob")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def game(test_client, auth_headers) -> dict:
    resp = await test_client.post(
        "/api/games", json={"title": "Friday Night"}, headers=auth_headers(*HOST)
    )
    assert resp.status_code == 201
    return resp.json()


async def _invite(test_client, auth_headers, game_id: str, user_id: str, **extra):
    return await test_client.post(
        f"/api/games/{game_id}/invites",
        json={"invited_user_id": user_id, **extra},
        headers=auth_headers(*HOST),
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestInviteRoutes:

    @pytest.mark.asyncio
    async def test_send_and_list(self, test_client, auth_headers, game, mock_db):
        await mock_db.users.insert_one({"_id": "user-bob", "display_name": "Bobby"})

        resp = await _invite(test_client, auth_headers, game["id"], "user-bob")

        assert resp.status_code == 201
        invite = resp.json()
        assert invite["invited_user_display_name"] == "Bobby"
        assert invite["host_name"] == "Hannah"
        assert invite["status"] == "pending"

        listing = await test_client.get(
            f"/api/games/{game['id']}/invites", headers=auth_headers(*HOST)
        )
        assert listing.json()["total_count"] == 1

    @pytest.mark.asyncio
    async def test_duplicate_is_400(self, test_client, auth_headers, game):
        await _invite(test_client, auth_headers, game["id"], "user-bob")

        resp = await _invite(test_client, auth_headers, game["id"], "user-bob")

        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_non_host_is_403(self, test_client, auth_headers, game):
        resp = await test_client.post(
            f"/api/games/{game['id']}/invites",
            json={"invited_user_id": "user-carol"},
            headers=auth_headers(*BOB),
        )

        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_group_invite(self, test_client, auth_headers, game, mock_db):
        await mock_db.groups.insert_one(
            {"_id": "grp-1", "member_ids": ["host-1", "user-bob", "user-carol"]}
        )

        resp = await test_client.post(
            f"/api/games/{game['id']}/invites/group",
            json={"group_id": "grp-1", "group_name": "Poker Club"},
            headers=auth_headers(*HOST),
        )

        assert resp.status_code == 201
        assert sorted(i["invited_user_id"] for i in resp.json()["invites"]) == [
            "user-bob",
            "user-carol",
        ]

    @pytest.mark.asyncio
    async def test_pending_then_accept(self, test_client, auth_headers, game):
        sent = (await _invite(test_client, auth_headers, game["id"], "user-bob")).json()

        pending = await test_client.get("/api/invites/pending", headers=auth_headers(*BOB))
        assert [i["id"] for i in pending.json()["invites"]] == [sent["id"]]

        resp = await test_client.post(
            f"/api/invites/{sent['id']}/accept", headers=auth_headers(*BOB)
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "accepted"

        pending = await test_client.get("/api/invites/pending", headers=auth_headers(*BOB))
        assert pending.json()["total_count"] == 0

    @pytest.mark.asyncio
    async def test_other_user_cannot_decline(self, test_client, auth_headers, game):
        sent = (await _invite(test_client, auth_headers, game["id"], "user-bob")).json()

        resp = await test_client.post(
            f"/api/invites/{sent['id']}/decline", headers=auth_headers(*HOST)
        )

        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_ending_game_expires_invites(self, test_client, auth_headers, game):
        sent = (await _invite(test_client, auth_headers, game["id"], "user-bob")).json()

        await test_client.post(f"/api/games/{game['id']}/end", headers=auth_headers(*HOST))

        listing = await test_client.get(
            f"/api/games/{game['id']}/invites", headers=auth_headers(*HOST)
        )
        assert listing.json()["invites"][0]["status"] == "expired"
        resp = await test_client.post(
            f"/api/invites/{sent['id']}/accept", headers=auth_headers(*BOB)
        )
        assert resp.status_code == 400
