"""
Tests for the REST API routes.
"""

import time

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from infrastructure.service_container import ServiceConfig, ServiceContainer


@pytest.fixture
def container(repo_db_path):
    return ServiceContainer(ServiceConfig(db_path=repo_db_path))


@pytest.fixture
def client(container):
    app = create_app(container)
    with TestClient(app) as test_client:
        yield test_client


def register(client, username):
    response = client.post("/api/auth/register", json={"username": username})
    assert response.status_code == 201, response.text
    body = response.json()
    return body["profile"], {"Authorization": f"Bearer {body['token']}"}


def create_market(client, headers, **overrides):
    payload = {"title": "Will the butler do it?", "deadline": int(time.time()) + 3600, **overrides}
    response = client.post("/api/predictions", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealthAndAuth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_register_and_me(self, client):
        profile, headers = register(client, "watcher")

        me = client.get("/api/auth/me", headers=headers)

        assert me.status_code == 200
        assert me.json()["id"] == profile["id"]
        assert me.json()["coins"] == 1000

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["error"] == "No token provided"

    def test_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer bogus"})
        assert response.status_code == 401

    def test_duplicate_username(self, client):
        register(client, "watcher")
        response = client.post("/api/auth/register", json={"username": "WATCHER"})
        assert response.status_code == 400
        assert response.json()["code"] == "username_taken"

    def test_update_me(self, client):
        _, headers = register(client, "watcher")
        response = client.patch("/api/auth/me", json={"country": "UK"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["country"] == "UK"

    def test_validation_errors_use_error_body(self, client):
        response = client.post("/api/auth/register", json={})
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
        assert "username" in response.json()["error"]


class TestMarketsApi:
    def test_scenario_first_bet(self, client):
        _, creator_headers = register(client, "creator")
        _, headers = register(client, "bettor")
        market = create_market(client, creator_headers)

        response = client.post(
            f"/api/predictions/{market['id']}/bet",
            json={"position": "yes", "amount": 100},
            headers=headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["new_balance"] == 900
        assert (body["total_yes"], body["total_no"], body["total_pool"]) == (100, 0, 100)

        txs = client.get("/api/users/me/transactions", headers=headers).json()
        assert txs[0]["type"] == "bet_placed"
        assert txs[0]["amount"] == -100

    def test_insufficient_funds_body(self, client):
        _, creator_headers = register(client, "creator")
        _, headers = register(client, "bettor")
        market = create_market(client, creator_headers)

        response = client.post(
            f"/api/predictions/{market['id']}/bet",
            json={"position": "no", "amount": 1001},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "Insufficient PlotCoins",
            "code": "insufficient_funds",
            "balance": 1000,
            "required": 1001,
        }

    def test_creator_limit_body(self, client):
        _, creator_headers = register(client, "creator")
        market = create_market(client, creator_headers)
        client.post(
            f"/api/predictions/{market['id']}/bet",
            json={"position": "yes", "amount": 180},
            headers=creator_headers,
        )

        response = client.post(
            f"/api/predictions/{market['id']}/bet",
            json={"position": "yes", "amount": 30},
            headers=creator_headers,
        )

        assert response.status_code == 400
        assert response.json()["max"] == 200
        assert response.json()["current"] == 180

    def test_non_positive_amount_rejected(self, client):
        _, creator_headers = register(client, "creator")
        market = create_market(client, creator_headers)
        response = client.post(
            f"/api/predictions/{market['id']}/bet",
            json={"position": "yes", "amount": 0},
            headers=creator_headers,
        )
        assert response.status_code == 400

    def test_amount_beyond_integer_range_rejected(self, client):
        _, creator_headers = register(client, "creator")
        bob, headers = register(client, "bettor")
        market = create_market(client, creator_headers)

        bet = client.post(
            f"/api/predictions/{market['id']}/bet",
            json={"position": "yes", "amount": 10**20},
            headers=headers,
        )
        challenge = client.post(
            "/api/challenges",
            json={"challenged_id": bob["id"], "prediction_id": market["id"], "position": "no", "amount": 10**20},
            headers=creator_headers,
        )

        assert bet.status_code == 400
        assert bet.json()["code"] == "validation_error"
        assert challenge.status_code == 400
        assert challenge.json()["code"] == "validation_error"
        assert client.get("/api/auth/me", headers=headers).json()["coins"] == 1000
        assert client.get(f"/api/predictions/{market['id']}").json()["total_pool"] == 0

    def test_bet_preview(self, client):
        _, creator_headers = register(client, "creator")
        _, headers = register(client, "bettor")
        _, rival_headers = register(client, "rival")
        market = create_market(client, creator_headers)
        client.post(
            f"/api/predictions/{market['id']}/bet",
            json={"position": "no", "amount": 300},
            headers=rival_headers,
        )

        anonymous = client.get(
            f"/api/predictions/{market['id']}/preview", params={"position": "yes", "amount": 100}
        )
        signed_in = client.get(
            f"/api/predictions/{market['id']}/preview",
            params={"position": "yes", "amount": 1001},
            headers=headers,
        )

        assert anonymous.status_code == 200
        assert anonymous.json()["potential_payout"] == 400.0
        assert anonymous.json()["can_afford"] is None
        assert signed_in.json()["can_afford"] is False
        assert signed_in.json()["balance_after"] is None

    def test_bet_preview_rejects_bad_position(self, client):
        _, creator_headers = register(client, "creator")
        market = create_market(client, creator_headers)
        response = client.get(
            f"/api/predictions/{market['id']}/preview", params={"position": "maybe", "amount": 10}
        )
        assert response.status_code == 400

    def test_resolve_flow(self, client):
        _, creator_headers = register(client, "creator")
        _, yes_headers = register(client, "yes_fan")
        _, no_headers = register(client, "no_fan")
        market = create_market(client, creator_headers)
        client.post(f"/api/predictions/{market['id']}/bet", json={"position": "yes", "amount": 300}, headers=yes_headers)
        client.post(f"/api/predictions/{market['id']}/bet", json={"position": "no", "amount": 700}, headers=no_headers)

        forbidden = client.post(f"/api/predictions/{market['id']}/resolve", json={"outcome": "yes"}, headers=yes_headers)
        assert forbidden.status_code == 403
        assert forbidden.json()["code"] == "not_authorized"

        resolved = client.post(f"/api/predictions/{market['id']}/resolve", json={"outcome": "yes"}, headers=creator_headers)
        assert resolved.status_code == 200
        assert resolved.json()["total_paid"] == 1000

        again = client.post(f"/api/predictions/{market['id']}/resolve", json={"outcome": "no"}, headers=creator_headers)
        assert again.status_code == 400
        assert again.json()["code"] == "already_resolved"

        me = client.get("/api/auth/me", headers=yes_headers).json()
        assert me["coins"] == 1700
        assert me["reputation"] == 10

    def test_detail_and_listing(self, client):
        _, creator_headers = register(client, "creator")
        market = create_market(client, creator_headers, visibility="private")

        detail = client.get(f"/api/predictions/{market['id']}")
        assert detail.status_code == 200
        assert detail.json()["bets"] == []

        assert client.get("/api/predictions").json() == []
        mine = client.get("/api/predictions", headers=creator_headers).json()
        assert [p["id"] for p in mine] == [market["id"]]

    def test_missing_prediction(self, client):
        response = client.get("/api/predictions/999")
        assert response.status_code == 404
        assert response.json()["error"] == "Prediction not found"

    def test_deadline_accepts_iso_string(self, client):
        _, headers = register(client, "creator")
        response = client.post(
            "/api/predictions",
            json={"title": "ISO deadline?", "deadline": "2099-01-01T00:00:00Z"},
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["deadline"] == 4070908800

    def test_cancel_and_dispute_routes(self, client):
        _, creator_headers = register(client, "creator")
        _, headers = register(client, "bettor")
        market = create_market(client, creator_headers)
        client.post(f"/api/predictions/{market['id']}/bet", json={"position": "yes", "amount": 50}, headers=headers)
        client.post(f"/api/predictions/{market['id']}/resolve", json={"outcome": "no"}, headers=creator_headers)

        dispute = client.post(
            f"/api/predictions/{market['id']}/dispute",
            json={"vote": "yes", "reason": "It clearly happened"},
            headers=headers,
        )
        assert dispute.status_code == 201
        assert dispute.json()["yes_votes"] == 1

        listing = client.get(f"/api/predictions/{market['id']}/disputes").json()
        assert listing["disputes"][0]["reason"] == "It clearly happened"
        assert client.get(f"/api/predictions/{market['id']}").json()["disputed"] is True

        other = create_market(client, creator_headers)
        cancelled = client.post(f"/api/predictions/{other['id']}/cancel", headers=creator_headers)
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"


class TestChallengesApi:
    def test_challenge_decline(self, client):
        _, creator_headers = register(client, "creator")
        _, alice_headers = register(client, "alice")
        bob, bob_headers = register(client, "bob")
        market = create_market(client, creator_headers)

        created = client.post(
            "/api/challenges",
            json={"challenged_id": bob["id"], "prediction_id": market["id"], "position": "yes", "amount": 50},
            headers=alice_headers,
        )
        assert created.status_code == 201
        challenge_id = created.json()["challenge"]["id"]

        pending = client.get("/api/challenges/my", params={"status": "pending"}, headers=bob_headers).json()
        assert [c["id"] for c in pending] == [challenge_id]

        hijack = client.post(f"/api/challenges/{challenge_id}/accept", headers=alice_headers)
        assert hijack.status_code == 403

        declined = client.post(f"/api/challenges/{challenge_id}/decline", headers=bob_headers)
        assert declined.status_code == 200
        assert declined.json()["challenge"]["status"] == "declined"
        assert client.get("/api/auth/me", headers=alice_headers).json()["coins"] == 1000


class TestUsersAndClansApi:
    def test_daily_bonus_and_reconcile(self, client):
        _, headers = register(client, "daily")

        status = client.get("/api/users/daily-bonus", headers=headers).json()
        assert status == {"can_claim": True, "amount": 50, "next_claim_at": None, "error": None, "code": None}

        first = client.post("/api/users/daily-bonus", headers=headers)
        second = client.post("/api/users/daily-bonus", headers=headers)

        assert first.status_code == 200
        assert first.json()["new_balance"] == 1050
        assert second.status_code == 400
        assert second.json()["code"] == "already_claimed"
        assert "next_claim_at" in second.json()

        blocked = client.get("/api/users/daily-bonus", headers=headers).json()
        assert blocked["can_claim"] is False
        assert blocked["code"] == "already_claimed"
        assert blocked["next_claim_at"] == second.json()["next_claim_at"]

        reconcile = client.get("/api/users/me/reconcile", headers=headers).json()
        assert reconcile["consistent"] is True
        assert reconcile["balance"] == 1050

    def test_leaderboard_and_profile(self, client):
        profile, _ = register(client, "ranked")
        board = client.get("/api/users/leaderboard").json()
        assert [row["username"] for row in board] == ["ranked"]
        assert client.get(f"/api/users/{profile['id']}").json()["username"] == "ranked"
        assert client.get(f"/api/users/{profile['id']}/stats").json()["total_bets"] == 0
        assert client.get("/api/users/4242").status_code == 404

    def test_clan_invite_code_visibility(self, client):
        _, owner_headers = register(client, "owner")
        _, joiner_headers = register(client, "joiner")

        assert client.get("/api/clans/my", headers=owner_headers).json() is None

        clan = client.post("/api/clans", json={"name": "Plot Armor"}, headers=owner_headers).json()
        assert clan["invite_code"]

        public_view = client.get(f"/api/clans/{clan['id']}")
        assert public_view.json()["invite_code"] is None

        joined = client.post(f"/api/clans/join/{clan['invite_code']}", headers=joiner_headers)
        assert joined.status_code == 200
        assert joined.json()["member_count"] == 2

        member_view = client.get(f"/api/clans/{clan['id']}", headers=joiner_headers).json()
        assert member_view["invite_code"] == clan["invite_code"]
        assert len(member_view["members"]) == 2

        board = client.get("/api/clans/leaderboard").json()
        assert board[0]["name"] == "Plot Armor"
        assert board[0]["invite_code"] is None


class TestServerErrors:
    def test_unexpected_error_returns_500(self, container, monkeypatch):
        app = create_app(container)

        with TestClient(app, raise_server_exceptions=False) as client:
            def explode(*args, **kwargs):
                raise RuntimeError("disk on fire")

            monkeypatch.setattr(container.profile_service, "get_leaderboard", explode)
            response = client.get("/api/users/leaderboard")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error", "code": "server_error"}
