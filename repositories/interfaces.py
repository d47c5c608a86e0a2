"""
Abstract repository interfaces for data access.

These interfaces define the contracts implemented by concrete repositories.
"""

from abc import ABC, abstractmethod


class IProfileRepository(ABC):
    @abstractmethod
    def create_with_signup_bonus(
        self,
        username: str,
        signup_bonus: int,
        country: str | None = None,
        display_name: str | None = None,
        is_admin: bool = False,
    ) -> dict: ...

    @abstractmethod
    def get_by_id(self, user_id: int) -> dict | None: ...

    @abstractmethod
    def get_by_username(self, username: str) -> dict | None: ...

    @abstractmethod
    def exists(self, user_id: int) -> bool: ...

    @abstractmethod
    def update_profile(self, user_id: int, **fields) -> dict: ...

    @abstractmethod
    def get_balance(self, user_id: int) -> int: ...

    @abstractmethod
    def get_leaderboard(self, country: str | None = None, limit: int = 50) -> list[dict]: ...

    @abstractmethod
    def claim_daily_bonus_atomic(self, user_id: int, amount: int, cooldown_seconds: int) -> dict: ...

    @abstractmethod
    def store_token(self, user_id: int, token: str) -> None: ...

    @abstractmethod
    def get_by_token(self, token: str) -> dict | None: ...


class ILedgerRepository(ABC):
    @abstractmethod
    def credit(
        self,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
    ) -> int: ...

    @abstractmethod
    def debit(
        self,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
    ) -> int: ...

    @abstractmethod
    def get_transactions(self, user_id: int, limit: int = 50, offset: int = 0) -> list[dict]: ...

    @abstractmethod
    def get_ledger_snapshot(self, user_id: int) -> dict | None: ...

    @abstractmethod
    def find_inconsistent_users(self) -> list[dict]: ...


class IPredictionRepository(ABC):
    @abstractmethod
    def create_prediction(
        self,
        creator_id: int,
        title: str,
        deadline: int,
        mode: str = "unofficial",
        visibility: str = "public",
        description: str | None = None,
        show_id: str | None = None,
        creator_bet_limit: int = 200,
    ) -> dict: ...

    @abstractmethod
    def get_prediction(self, prediction_id: int) -> dict | None: ...

    @abstractmethod
    def list_predictions(
        self,
        viewer_id: int | None = None,
        status: str | None = None,
        show_id: str | None = None,
        sort: str = "newest",
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]: ...

    @abstractmethod
    def get_prediction_bets(self, prediction_id: int) -> list[dict]: ...

    @abstractmethod
    def place_bet_atomic(
        self, prediction_id: int, user_id: int, position: str, amount: int
    ) -> dict: ...

    @abstractmethod
    def settle_prediction_atomic(
        self,
        prediction_id: int,
        outcome: str,
        resolved_by: int,
        reputation_per_win: int = 0,
        reputation_per_challenge_win: int = 0,
    ) -> dict: ...

    @abstractmethod
    def cancel_prediction_atomic(self, prediction_id: int, cancelled_by: int) -> dict: ...

    @abstractmethod
    def get_prediction_totals(self, prediction_id: int) -> dict: ...

    @abstractmethod
    def get_user_prediction_stats(self, user_id: int) -> dict: ...


class IChallengeRepository(ABC):
    @abstractmethod
    def create_challenge_atomic(
        self,
        challenger_id: int,
        challenged_id: int,
        prediction_id: int,
        position: str,
        amount: int,
    ) -> dict: ...

    @abstractmethod
    def get_challenge(self, challenge_id: int) -> dict | None: ...

    @abstractmethod
    def accept_challenge_atomic(self, challenge_id: int, user_id: int) -> dict: ...

    @abstractmethod
    def decline_challenge_atomic(self, challenge_id: int, user_id: int) -> dict: ...

    @abstractmethod
    def get_user_challenges(self, user_id: int, status: str | None = None) -> list[dict]: ...


class IDisputeRepository(ABC):
    @abstractmethod
    def add_dispute_atomic(
        self,
        prediction_id: int,
        user_id: int,
        vote: str,
        reason: str | None,
        window_seconds: int,
    ) -> dict: ...

    @abstractmethod
    def get_disputes(self, prediction_id: int) -> dict: ...


class IClanRepository(ABC):
    @abstractmethod
    def create_clan(
        self,
        creator_id: int,
        name: str,
        invite_code: str,
        description: str | None = None,
    ) -> dict: ...

    @abstractmethod
    def get_clan(self, clan_id: int) -> dict | None: ...

    @abstractmethod
    def get_members(self, clan_id: int) -> list[dict]: ...

    @abstractmethod
    def get_user_clan_id(self, user_id: int) -> int | None: ...

    @abstractmethod
    def join_by_invite_code(self, user_id: int, invite_code: str, max_members: int) -> dict: ...

    @abstractmethod
    def add_xp_for_user(self, user_id: int, xp: int, level_for_xp) -> dict | None: ...

    @abstractmethod
    def get_leaderboard(self, limit: int = 50) -> list[dict]: ...
