"""
Standard error codes for service layer.

These error codes let API handlers and clients programmatically handle
specific error conditions without parsing error message text.

Usage:
    from services import error_codes
    from services.result import Result

    if profile is None:
        return Result.fail("User not found", code=error_codes.NOT_FOUND)

    if balance < amount:
        return Result.fail("Insufficient PlotCoins", code=error_codes.INSUFFICIENT_FUNDS)
"""

# General errors
NOT_FOUND = "not_found"
VALIDATION_ERROR = "validation_error"
STATE_ERROR = "state_error"
PERMISSION_DENIED = "not_authorized"
UNAUTHENTICATED = "unauthenticated"
SERVER_ERROR = "server_error"

# Profile errors
USERNAME_TAKEN = "username_taken"

# Ledger errors
INSUFFICIENT_FUNDS = "insufficient_funds"
ALREADY_CLAIMED = "already_claimed"

# Market errors
MARKET_EXPIRED = "market_expired"
MARKET_CLOSED = "market_closed"
ALREADY_RESOLVED = "already_resolved"
CREATOR_BET_LIMIT = "creator_bet_limit"

# Challenge errors
ALREADY_RESPONDED = "already_responded"

# Dispute errors
DISPUTE_NOT_ALLOWED = "dispute_not_allowed"
DISPUTE_WINDOW_CLOSED = "dispute_window_closed"
ALREADY_DISPUTED = "already_disputed"

# Clan errors
ALREADY_IN_CLAN = "already_in_clan"
CLAN_FULL = "clan_full"
