"""
Async HTTP client for the PlotTwist REST API.

Usage:
    async with PlotTwistClient(token=token) as client:
        profile = await client.get_me()
        await client.place_bet(prediction_id, "yes", 100)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from client.exceptions import ApiError, ApiNotFound, ApiUnauthorized, ApiUnavailable
from config import API_BASE_URL, REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger("plottwist.client")


class PlotTwistClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or API_BASE_URL
        self.token = token
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else REQUEST_TIMEOUT_SECONDS
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> PlotTwistClient:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("PlotTwistClient must be used as async context manager")
        return self._client

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self.client.request(
                method=method,
                url=endpoint,
                params=params,
                json=json_data,
                headers=self._headers(),
            )
        except httpx.TimeoutException as exc:
            logger.warning(f"{method} {endpoint} timed out after {self.timeout_seconds}s")
            raise ApiUnavailable(f"Request timed out: {endpoint}") from exc
        except httpx.TransportError as exc:
            logger.warning(f"{method} {endpoint} failed: {exc}")
            raise ApiUnavailable(f"Could not reach API: {exc}") from exc

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error") if isinstance(body, dict) else None
        message = message or response.reason_phrase or "Request failed"
        code = body.get("code") if isinstance(body, dict) else None

        if response.status_code == 401:
            raise ApiUnauthorized(message, status_code=401, code=code)
        if response.status_code == 404:
            raise ApiNotFound(message, status_code=404, code=code)
        raise ApiError(message, status_code=response.status_code, code=code)

    # --- Auth & profiles ---

    async def register(self, username: str, display_name: str | None = None, country: str | None = None) -> dict:
        data = await self._request(
            "POST",
            "/api/auth/register",
            json_data={"username": username, "display_name": display_name, "country": country},
        )
        self.token = data["token"]
        return data

    async def get_me(self) -> dict:
        return await self._request("GET", "/api/auth/me")

    async def update_me(self, **fields) -> dict:
        return await self._request("PATCH", "/api/auth/me", json_data=fields)

    async def get_profile(self, user_id: int) -> dict:
        return await self._request("GET", f"/api/users/{user_id}")

    async def get_leaderboard(self, country: str | None = None, limit: int = 50) -> list[dict]:
        return await self._request("GET", "/api/users/leaderboard", params={"country": country, "limit": limit})

    async def get_transactions(self, limit: int = 50, offset: int = 0) -> list[dict]:
        return await self._request("GET", "/api/users/me/transactions", params={"limit": limit, "offset": offset})

    async def get_daily_bonus_status(self) -> dict:
        return await self._request("GET", "/api/users/daily-bonus")

    async def claim_daily_bonus(self) -> dict:
        return await self._request("POST", "/api/users/daily-bonus")

    # --- Predictions ---

    async def list_predictions(self, **filters) -> list[dict]:
        return await self._request("GET", "/api/predictions", params=filters)

    async def get_prediction(self, prediction_id: int) -> dict:
        return await self._request("GET", f"/api/predictions/{prediction_id}")

    async def create_prediction(self, title: str, deadline: int, **fields) -> dict:
        return await self._request(
            "POST", "/api/predictions", json_data={"title": title, "deadline": deadline, **fields}
        )

    async def preview_bet(self, prediction_id: int, position: str, amount: int) -> dict:
        return await self._request(
            "GET",
            f"/api/predictions/{prediction_id}/preview",
            params={"position": position, "amount": amount},
        )

    async def place_bet(self, prediction_id: int, position: str, amount: int) -> dict:
        return await self._request(
            "POST",
            f"/api/predictions/{prediction_id}/bet",
            json_data={"position": position, "amount": amount},
        )

    async def resolve_prediction(self, prediction_id: int, outcome: str) -> dict:
        return await self._request(
            "POST", f"/api/predictions/{prediction_id}/resolve", json_data={"outcome": outcome}
        )

    async def cancel_prediction(self, prediction_id: int) -> dict:
        return await self._request("POST", f"/api/predictions/{prediction_id}/cancel")

    async def dispute_prediction(self, prediction_id: int, vote: str, reason: str | None = None) -> dict:
        return await self._request(
            "POST",
            f"/api/predictions/{prediction_id}/dispute",
            json_data={"vote": vote, "reason": reason},
        )

    # --- Challenges ---

    async def get_my_challenges(self, status: str | None = None) -> list[dict]:
        return await self._request("GET", "/api/challenges/my", params={"status": status})

    async def create_challenge(self, challenged_id: int, prediction_id: int, position: str, amount: int) -> dict:
        return await self._request(
            "POST",
            "/api/challenges",
            json_data={
                "challenged_id": challenged_id,
                "prediction_id": prediction_id,
                "position": position,
                "amount": amount,
            },
        )

    async def accept_challenge(self, challenge_id: int) -> dict:
        return await self._request("POST", f"/api/challenges/{challenge_id}/accept")

    async def decline_challenge(self, challenge_id: int) -> dict:
        return await self._request("POST", f"/api/challenges/{challenge_id}/decline")

    # --- Clans ---

    async def get_my_clan(self) -> dict | None:
        return await self._request("GET", "/api/clans/my")

    async def create_clan(self, name: str, description: str | None = None) -> dict:
        return await self._request("POST", "/api/clans", json_data={"name": name, "description": description})

    async def join_clan(self, invite_code: str) -> dict:
        return await self._request("POST", f"/api/clans/join/{invite_code}")
