"""
Service for registration, authentication and profile operations.
"""

import logging
import re
import secrets
import time
from dataclasses import dataclass

from config import DAILY_BONUS, DAILY_BONUS_COOLDOWN_SECONDS, LEADERBOARD_LIMIT, SIGNUP_BONUS
from repositories.interfaces import IPredictionRepository, IProfileRepository
from services import error_codes
from services.exceptions import NotFound, Unauthenticated, ValidationError
from services.permissions import is_admin
from services.result import Result

logger = logging.getLogger("plottwist.services.profile")

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,30}$")
MAX_DISPLAY_NAME_LENGTH = 50
MAX_COUNTRY_LENGTH = 64
MAX_AVATAR_URL_LENGTH = 500


@dataclass
class DailyBonusState:
    """Whether a user can claim the daily bonus right now."""

    user_id: int
    last_claimed_at: int | None
    can_claim: bool
    next_claim_at: int | None
    amount: int


class ProfileService:
    """
    Handles profiles, tokens, the daily bonus and leaderboards.
    """

    def __init__(
        self,
        profile_repo: IProfileRepository,
        prediction_repo: IPredictionRepository | None = None,
        admin_user_ids: list[int] | None = None,
        signup_bonus: int | None = None,
        daily_bonus: int | None = None,
        daily_bonus_cooldown_seconds: int | None = None,
    ):
        self.profile_repo = profile_repo
        self.prediction_repo = prediction_repo
        self.admin_user_ids = set(admin_user_ids or [])
        self.signup_bonus = signup_bonus if signup_bonus is not None else SIGNUP_BONUS
        self.daily_bonus = daily_bonus if daily_bonus is not None else DAILY_BONUS
        self.daily_bonus_cooldown_seconds = (
            daily_bonus_cooldown_seconds
            if daily_bonus_cooldown_seconds is not None
            else DAILY_BONUS_COOLDOWN_SECONDS
        )

    def is_admin(self, profile: dict | None) -> bool:
        return is_admin(profile, self.admin_user_ids)

    def _validate_username(self, username: str | None) -> str:
        username = (username or "").strip()
        if not USERNAME_PATTERN.match(username):
            raise ValidationError(
                "Username must be 3-30 characters: letters, numbers and underscores"
            )
        return username

    def register(
        self,
        username: str,
        country: str | None = None,
        display_name: str | None = None,
    ) -> dict:
        """
        Create a profile with the signup bonus and issue a bearer token.

        Returns:
            Dict with profile and token. The token is only ever returned here.
        """
        username = self._validate_username(username)
        if display_name is not None and len(display_name.strip()) > MAX_DISPLAY_NAME_LENGTH:
            raise ValidationError(f"Display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters")
        if country is not None and len(country) > MAX_COUNTRY_LENGTH:
            raise ValidationError("Country is too long")

        profile = self.profile_repo.create_with_signup_bonus(
            username=username,
            signup_bonus=self.signup_bonus,
            country=country,
            display_name=display_name.strip() if display_name else None,
        )
        token = secrets.token_urlsafe(32)
        self.profile_repo.store_token(profile["id"], token)
        logger.info(f"Registered user {profile['id']} ({username}) with {self.signup_bonus} coins")
        return {"profile": profile, "token": token}

    def authenticate(self, token: str | None) -> dict:
        """Resolve a bearer token to its profile."""
        if not token:
            raise Unauthenticated()
        profile = self.profile_repo.get_by_token(token)
        if not profile:
            raise Unauthenticated("Invalid or expired token")
        return profile

    def get_profile(self, user_id: int) -> dict:
        profile = self.profile_repo.get_by_id(user_id)
        if not profile:
            raise NotFound("User not found")
        return profile

    def update_profile(
        self,
        user_id: int,
        username: str | None = None,
        display_name: str | None = None,
        avatar_url: str | None = None,
        country: str | None = None,
    ) -> dict:
        if username is not None:
            username = self._validate_username(username)
        if display_name is not None:
            display_name = display_name.strip()
            if not display_name or len(display_name) > MAX_DISPLAY_NAME_LENGTH:
                raise ValidationError(
                    f"Display name must be 1-{MAX_DISPLAY_NAME_LENGTH} characters"
                )
        if avatar_url is not None and len(avatar_url) > MAX_AVATAR_URL_LENGTH:
            raise ValidationError("Avatar URL is too long")
        if country is not None and len(country) > MAX_COUNTRY_LENGTH:
            raise ValidationError("Country is too long")

        return self.profile_repo.update_profile(
            user_id,
            username=username,
            display_name=display_name,
            avatar_url=avatar_url,
            country=country,
        )

    def get_daily_bonus_state(self, user_id: int) -> DailyBonusState:
        profile = self.get_profile(user_id)
        last = profile.get("last_daily_bonus")
        now = int(time.time())
        next_claim = last + self.daily_bonus_cooldown_seconds if last else None
        can_claim = next_claim is None or now >= next_claim
        return DailyBonusState(
            user_id=user_id,
            last_claimed_at=last,
            can_claim=can_claim,
            next_claim_at=None if can_claim else next_claim,
            amount=self.daily_bonus,
        )

    def check_daily_bonus(self, user_id: int) -> Result[DailyBonusState]:
        """Result-returning pre-check used by clients before offering the claim."""
        state = self.get_daily_bonus_state(user_id)
        if not state.can_claim:
            return Result.fail(
                "Daily bonus already claimed",
                code=error_codes.ALREADY_CLAIMED,
                next_claim_at=state.next_claim_at,
            )
        return Result.ok(state)

    def claim_daily_bonus(self, user_id: int) -> dict:
        """
        Credit the daily bonus.

        Raises:
            AlreadyClaimed: If the last daily bonus was under 24h ago
        """
        result = self.profile_repo.claim_daily_bonus_atomic(
            user_id, self.daily_bonus, self.daily_bonus_cooldown_seconds
        )
        logger.info(f"User {user_id} claimed daily bonus of {self.daily_bonus}")
        return result

    def get_leaderboard(self, country: str | None = None, limit: int | None = None) -> list[dict]:
        limit = LEADERBOARD_LIMIT if limit is None else limit
        if limit <= 0 or limit > 200:
            raise ValidationError("limit must be between 1 and 200")
        return self.profile_repo.get_leaderboard(country=country or None, limit=limit)

    def get_stats(self, user_id: int) -> dict:
        profile = self.get_profile(user_id)
        stats = self.prediction_repo.get_user_prediction_stats(user_id) if self.prediction_repo else {}
        return {
            "user_id": user_id,
            "username": profile["username"],
            "coins": profile["coins"],
            "reputation": profile["reputation"],
            **stats,
        }
