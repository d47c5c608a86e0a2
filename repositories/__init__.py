"""
Repository layer for data access abstraction.
"""

from repositories.base_repository import BaseRepository
from repositories.challenge_repository import ChallengeRepository
from repositories.clan_repository import ClanRepository
from repositories.dispute_repository import DisputeRepository
from repositories.interfaces import (
    IChallengeRepository,
    IClanRepository,
    IDisputeRepository,
    ILedgerRepository,
    IPredictionRepository,
    IProfileRepository,
)
from repositories.ledger_repository import LedgerRepository
from repositories.prediction_repository import PredictionRepository
from repositories.profile_repository import ProfileRepository

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "LedgerRepository",
    "PredictionRepository",
    "ChallengeRepository",
    "DisputeRepository",
    "ClanRepository",
    "IProfileRepository",
    "ILedgerRepository",
    "IPredictionRepository",
    "IChallengeRepository",
    "IDisputeRepository",
    "IClanRepository",
]
