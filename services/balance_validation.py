"""
Balance validation utilities for the PlotCoin economy.

These are read-only pre-flight checks for API handlers and clients. The
authoritative check always happens again inside the write transaction.
"""

from typing import TYPE_CHECKING

from services import error_codes
from services.result import Result

if TYPE_CHECKING:
    from repositories.interfaces import IProfileRepository


# Largest value a SQLite INTEGER column can hold
MAX_AMOUNT = 2**63 - 1


def validate_amount(amount, label: str = "Amount") -> Result[int]:
    """Check that an amount is a positive integer no larger than MAX_AMOUNT (bools are rejected)."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        return Result.fail(f"{label} must be a positive whole number", code=error_codes.VALIDATION_ERROR)
    if amount > MAX_AMOUNT:
        return Result.fail(f"{label} is too large", code=error_codes.VALIDATION_ERROR, max=MAX_AMOUNT)
    return Result.ok(amount)


def validate_can_spend(
    profile_repo: "IProfileRepository",
    user_id: int,
    amount: int,
) -> Result[int]:
    """
    Check if a user can spend the specified amount.

    Balances never go negative, so spending requires balance >= amount.

    Returns:
        Result.ok(new_balance) if spending is allowed
        Result.fail(error, code) otherwise

    Examples:
        >>> validate_can_spend(repo, 1, 100)  # balance=100
        Result(success=True, value=0)

        >>> validate_can_spend(repo, 1, 101)  # balance=100
        Result(success=False, error="Insufficient PlotCoins", error_code="insufficient_funds")
    """
    amount_check = validate_amount(amount)
    if not amount_check:
        return amount_check

    if not profile_repo.exists(user_id):
        return Result.fail("User not found", code=error_codes.NOT_FOUND)

    balance = profile_repo.get_balance(user_id)
    if balance < amount:
        return Result.fail(
            "Insufficient PlotCoins",
            code=error_codes.INSUFFICIENT_FUNDS,
            balance=balance,
            required=amount,
        )
    return Result.ok(balance - amount)
