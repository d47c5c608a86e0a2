"""
Tests for the HTTP client and the client-side session.
"""

import json

import httpx
import pytest

from client import ApiError, ApiNotFound, ApiUnauthorized, ApiUnavailable, PlotTwistClient, UserSession

PROFILE = {"id": 1, "username": "viewer", "coins": 1000, "reputation": 0}


def make_client(handler, token="tok"):
    return PlotTwistClient(
        base_url="http://testserver",
        token=token,
        timeout_seconds=1.0,
        transport=httpx.MockTransport(handler),
    )


class TestPlotTwistClient:
    @pytest.mark.asyncio
    async def test_sends_bearer_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=PROFILE)

        async with make_client(handler) as client:
            assert await client.get_me() == PROFILE
        assert seen["auth"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_register_stores_token(self):
        def handler(request):
            assert json.loads(request.content)["username"] == "viewer"
            return httpx.Response(201, json={"profile": PROFILE, "token": "fresh"})

        async with make_client(handler, token=None) as client:
            await client.register("viewer")
            assert client.token == "fresh"

    @pytest.mark.asyncio
    async def test_preview_sends_query_params(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"potential_payout": 400.0})

        async with make_client(handler) as client:
            preview = await client.preview_bet(3, "yes", 100)

        assert preview["potential_payout"] == 400.0
        assert seen == {"path": "/api/predictions/3/preview", "params": {"position": "yes", "amount": "100"}}

    @pytest.mark.asyncio
    async def test_error_body_mapped_to_api_error(self):
        def handler(request):
            return httpx.Response(400, json={"error": "Insufficient PlotCoins", "code": "insufficient_funds"})

        async with make_client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.place_bet(1, "yes", 5000)

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "insufficient_funds"
        assert str(exc_info.value) == "Insufficient PlotCoins"

    @pytest.mark.asyncio
    async def test_status_specific_errors(self):
        def handler(request):
            if request.url.path == "/api/auth/me":
                return httpx.Response(401, json={"error": "No token provided"})
            return httpx.Response(404, json={"error": "Prediction not found", "code": "not_found"})

        async with make_client(handler) as client:
            with pytest.raises(ApiUnauthorized):
                await client.get_me()
            with pytest.raises(ApiNotFound):
                await client.get_prediction(9)

    @pytest.mark.asyncio
    async def test_non_json_error(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        async with make_client(handler) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_leaderboard()
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_timeout_maps_to_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with make_client(handler) as client:
            with pytest.raises(ApiUnavailable, match="timed out"):
                await client.get_me()

    @pytest.mark.asyncio
    async def test_connection_error_maps_to_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(ApiUnavailable):
                await client.list_predictions()

    @pytest.mark.asyncio
    async def test_none_params_are_dropped(self):
        seen = {}

        def handler(request):
            seen["query"] = dict(request.url.params)
            return httpx.Response(200, json=[])

        async with make_client(handler) as client:
            await client.get_leaderboard(country=None, limit=10)
        assert seen["query"] == {"limit": "10"}

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        client = make_client(lambda request: httpx.Response(200, json={}))
        with pytest.raises(RuntimeError):
            await client.get_me()


class TestUserSession:
    @pytest.mark.asyncio
    async def test_refresh_reconciles_with_server(self):
        server = {"coins": 1000}

        def handler(request):
            return httpx.Response(200, json={**PROFILE, "coins": server["coins"]})

        async with make_client(handler) as client:
            session = UserSession(client)
            await session.initialize()
            session.adjust_coins(-100)
            assert session.coins == 900

            server["coins"] = 950
            result = await session.refresh()

        assert result.refreshed
        assert result.discrepancy == 50
        assert session.coins == 950

    @pytest.mark.asyncio
    async def test_offline_refresh_keeps_local_state(self):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(200, json=PROFILE)
            raise httpx.ConnectError("offline", request=request)

        async with make_client(handler) as client:
            session = UserSession(client)
            await session.initialize()
            session.adjust_coins(-10)
            result = await session.refresh()

        assert not result.refreshed
        assert result.discrepancy == 0
        assert session.coins == 990

    @pytest.mark.asyncio
    async def test_initialize_offline(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        async with make_client(handler) as client:
            session = UserSession(client)
            assert await session.initialize() is None
        assert not session.is_signed_in
        assert session.adjust_coins(5) is None

    @pytest.mark.asyncio
    async def test_cached_listing_when_offline(self):
        listing = [{"id": 1, "title": "Twist?"}]
        state = {"online": True}

        def handler(request):
            if not state["online"]:
                raise httpx.ConnectError("offline", request=request)
            return httpx.Response(200, json=listing)

        async with make_client(handler) as client:
            session = UserSession(client)
            assert await session.get_predictions() == listing
            state["online"] = False
            assert await session.get_predictions() == listing
            assert await session.get_leaderboard() == []

    @pytest.mark.asyncio
    async def test_place_bet_takes_server_balance(self):
        def handler(request):
            if request.url.path == "/api/auth/me":
                return httpx.Response(200, json=PROFILE)
            return httpx.Response(201, json={"bet": {"id": 1}, "new_balance": 875})

        async with make_client(handler) as client:
            session = UserSession(client)
            await session.initialize()
            await session.place_bet(1, "yes", 125)
        assert session.coins == 875
