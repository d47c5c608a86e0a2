"""
Client-side view of the signed-in user.

The server is authoritative for balances. The session applies optimistic coin
changes locally and reconciles against /api/auth/me on refresh().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from client.api_client import PlotTwistClient
from client.exceptions import ApiUnavailable

logger = logging.getLogger("plottwist.client.session")


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of reconciling the local profile with the server."""

    refreshed: bool
    local_coins: int | None
    server_coins: int | None

    @property
    def discrepancy(self) -> int:
        if self.local_coins is None or self.server_coins is None:
            return 0
        return self.server_coins - self.local_coins


class UserSession:
    def __init__(self, client: PlotTwistClient):
        self.client = client
        self.profile: dict | None = None
        self._predictions_cache: list[dict] = []
        self._leaderboard_cache: list[dict] = []

    @property
    def coins(self) -> int | None:
        return self.profile["coins"] if self.profile else None

    @property
    def is_signed_in(self) -> bool:
        return self.profile is not None

    async def initialize(self) -> dict | None:
        """Load the current profile. Returns None if the API is unreachable."""
        try:
            self.profile = await self.client.get_me()
        except ApiUnavailable:
            logger.warning("API unavailable during session init; continuing signed-out")
            return None
        return self.profile

    def adjust_coins(self, delta: int) -> int | None:
        """Apply an optimistic balance change until the next refresh()."""
        if self.profile is None:
            return None
        self.profile = {**self.profile, "coins": self.profile["coins"] + delta}
        return self.profile["coins"]

    async def refresh(self) -> RefreshResult:
        """Replace the local profile with the server's copy."""
        local = self.coins
        try:
            server_profile = await self.client.get_me()
        except ApiUnavailable:
            logger.warning("API unavailable during refresh; keeping local profile")
            return RefreshResult(refreshed=False, local_coins=local, server_coins=None)

        self.profile = server_profile
        result = RefreshResult(refreshed=True, local_coins=local, server_coins=server_profile["coins"])
        if result.discrepancy:
            logger.info(
                f"Balance reconciled for user {server_profile['id']}: "
                f"local {local}, server {server_profile['coins']}"
            )
        return result

    async def place_bet(self, prediction_id: int, position: str, amount: int) -> dict:
        """Place a bet and take the server's new balance."""
        result = await self.client.place_bet(prediction_id, position, amount)
        if self.profile is not None:
            self.profile = {**self.profile, "coins": result["new_balance"]}
        return result

    async def get_predictions(self, **filters) -> list[dict]:
        """Active listing; falls back to the last good listing when offline."""
        try:
            self._predictions_cache = await self.client.list_predictions(**filters)
        except ApiUnavailable:
            logger.warning("API unavailable; serving cached predictions")
        return self._predictions_cache

    async def get_leaderboard(self, country: str | None = None) -> list[dict]:
        try:
            self._leaderboard_cache = await self.client.get_leaderboard(country=country)
        except ApiUnavailable:
            logger.warning("API unavailable; serving cached leaderboard")
        return self._leaderboard_cache
