"""
Domain exceptions raised by repositories and services.

Every error is a ValueError subclass carrying a stable code and the HTTP
status the API layer reports it with. Raising inside an atomic transaction
rolls the whole unit back, so a raised error never leaves partial state.
"""

from __future__ import annotations

from typing import Any

from services import error_codes


class PlotTwistError(ValueError):
    """Base class for recoverable, per-request failures."""

    code = error_codes.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.details}


class ValidationError(PlotTwistError):
    code = error_codes.VALIDATION_ERROR


class Unauthenticated(PlotTwistError):
    code = error_codes.UNAUTHENTICATED
    status_code = 401

    def __init__(self, message: str = "No token provided", **details: Any):
        super().__init__(message, **details)


class NotAuthorized(PlotTwistError):
    code = error_codes.PERMISSION_DENIED
    status_code = 403


class NotFound(PlotTwistError):
    code = error_codes.NOT_FOUND
    status_code = 404


class UsernameTaken(PlotTwistError):
    code = error_codes.USERNAME_TAKEN


class InsufficientFunds(PlotTwistError):
    code = error_codes.INSUFFICIENT_FUNDS

    def __init__(self, message: str = "Insufficient PlotCoins", **details: Any):
        super().__init__(message, **details)


class AlreadyClaimed(PlotTwistError):
    code = error_codes.ALREADY_CLAIMED


class MarketExpired(PlotTwistError):
    code = error_codes.MARKET_EXPIRED

    def __init__(self, message: str = "Prediction is not active or has expired", **details: Any):
        super().__init__(message, **details)


class MarketClosed(PlotTwistError):
    code = error_codes.MARKET_CLOSED

    def __init__(self, message: str = "Prediction is no longer active", **details: Any):
        super().__init__(message, **details)


class AlreadyResolved(PlotTwistError):
    code = error_codes.ALREADY_RESOLVED

    def __init__(self, message: str = "Prediction already resolved", **details: Any):
        super().__init__(message, **details)


class CreatorBetLimit(PlotTwistError):
    """Creator stake on their own market would exceed the cap."""

    code = error_codes.CREATOR_BET_LIMIT

    def __init__(self, max: int, current: int):
        super().__init__(
            f"Creators can stake at most {max} on their own prediction ({current} already staked)",
            max=max,
            current=current,
        )
        self.max = max
        self.current = current


class AlreadyResponded(PlotTwistError):
    code = error_codes.ALREADY_RESPONDED

    def __init__(self, message: str = "Challenge already responded", **details: Any):
        super().__init__(message, **details)


class DisputeNotAllowed(PlotTwistError):
    code = error_codes.DISPUTE_NOT_ALLOWED


class DisputeWindowClosed(PlotTwistError):
    code = error_codes.DISPUTE_WINDOW_CLOSED

    def __init__(self, message: str = "Dispute window has closed", **details: Any):
        super().__init__(message, **details)


class AlreadyDisputed(PlotTwistError):
    code = error_codes.ALREADY_DISPUTED

    def __init__(self, message: str = "You have already disputed this prediction", **details: Any):
        super().__init__(message, **details)


class AlreadyInClan(PlotTwistError):
    code = error_codes.ALREADY_IN_CLAN

    def __init__(self, message: str = "You are already in a clan", **details: Any):
        super().__init__(message, **details)


class ClanFull(PlotTwistError):
    code = error_codes.CLAN_FULL
