"""
Service for clans and clan XP.
"""

import logging
import secrets

from config import CLAN_LEVEL_THRESHOLDS, CLAN_MAX_MEMBERS, CLAN_XP_PER_BET, CLAN_XP_PER_WIN
from domain.services.clan_progression import ClanProgression
from repositories.interfaces import IClanRepository
from services.exceptions import NotFound, ValidationError

logger = logging.getLogger("plottwist.services.clan")

MAX_CLAN_NAME_LENGTH = 40
MAX_DESCRIPTION_LENGTH = 500


class ClanService:
    """
    Clan membership plus the XP hook fired by wagering events.
    """

    def __init__(
        self,
        clan_repo: IClanRepository,
        progression: ClanProgression | None = None,
        max_members: int | None = None,
        xp_per_bet: int | None = None,
        xp_per_win: int | None = None,
    ):
        self.clan_repo = clan_repo
        self.progression = progression or ClanProgression(CLAN_LEVEL_THRESHOLDS)
        self.max_members = max_members if max_members is not None else CLAN_MAX_MEMBERS
        self.xp_per_bet = xp_per_bet if xp_per_bet is not None else CLAN_XP_PER_BET
        self.xp_per_win = xp_per_win if xp_per_win is not None else CLAN_XP_PER_WIN

    def _decorate(self, clan: dict) -> dict:
        level = self.progression.describe(clan["xp"])
        return {
            **clan,
            "level": level.level,
            "level_name": level.name,
            "next_level_xp": level.next_level_xp,
        }

    def create_clan(self, user_id: int, name: str, description: str | None = None) -> dict:
        name = (name or "").strip()
        if len(name) < 3 or len(name) > MAX_CLAN_NAME_LENGTH:
            raise ValidationError(f"Clan name must be 3-{MAX_CLAN_NAME_LENGTH} characters")
        if description and len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError("Description is too long")

        clan = self.clan_repo.create_clan(
            creator_id=user_id,
            name=name,
            invite_code=secrets.token_hex(6),
            description=description,
        )
        logger.info(f"User {user_id} created clan {clan['id']} ({name})")
        return self._decorate(clan)

    def join_clan(self, user_id: int, invite_code: str) -> dict:
        clan = self.clan_repo.join_by_invite_code(user_id, invite_code.strip(), self.max_members)
        logger.info(f"User {user_id} joined clan {clan['id']}")
        return self._decorate(clan)

    def get_clan(self, clan_id: int) -> dict:
        clan = self.clan_repo.get_clan(clan_id)
        if not clan:
            raise NotFound("Clan not found")
        result = self._decorate(clan)
        result["members"] = self.clan_repo.get_members(clan_id)
        return result

    def get_user_clan(self, user_id: int) -> dict | None:
        clan_id = self.clan_repo.get_user_clan_id(user_id)
        if clan_id is None:
            return None
        return self.get_clan(clan_id)

    def get_leaderboard(self, limit: int = 50) -> list[dict]:
        return [self._decorate(clan) for clan in self.clan_repo.get_leaderboard(limit)]

    def award_xp(self, user_id: int, xp: int) -> dict | None:
        """
        Add XP to the user's clan, if any.

        Failures are logged and swallowed so a clan problem never fails the
        bet or settlement that triggered it.
        """
        if xp <= 0:
            return None
        try:
            clan = self.clan_repo.add_xp_for_user(user_id, xp, self.progression.level_for_xp)
        except Exception:
            logger.exception(f"Failed to award {xp} clan XP for user {user_id}")
            return None
        if clan and clan["level"] != clan["previous_level"]:
            logger.info(f"Clan {clan['id']} reached level {clan['level']}")
        return clan

    def on_bet_placed(self, user_id: int) -> dict | None:
        return self.award_xp(user_id, self.xp_per_bet)

    def on_bet_won(self, user_id: int) -> dict | None:
        return self.award_xp(user_id, self.xp_per_win)
