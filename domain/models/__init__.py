"""
Domain models - pure data structures representing business entities.
"""

from domain.models.market import BetPayout, SettlementPlan

__all__ = ["BetPayout", "SettlementPlan"]
