"""
Domain services containing pure business logic.
"""

from domain.services.clan_progression import ClanProgression
from domain.services.payout_service import PayoutService

__all__ = ["ClanProgression", "PayoutService"]
