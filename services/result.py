"""
Result type for pre-flight checks that should not raise.

Services use exceptions (services.exceptions) for operations that mutate
state, and Result for read-only questions such as "can this user spend 50?"
or "can this user claim the daily bonus yet?", where a negative answer is a
normal outcome rather than an error.

Usage:
    return Result.ok(balance)
    return Result.fail("Insufficient PlotCoins", code=error_codes.INSUFFICIENT_FUNDS)

    result = validate_can_spend(repo, user_id, 50)
    if not result:
        print(f"Error ({result.error_code}): {result.error}")
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    A simple result type for service method return values.

    Attributes:
        success: Whether the check passed
        value: The return value if successful
        error: Error message if failed
        error_code: Code from services.error_codes
        details: Extra structured data about a failure (e.g. next_claim_at)
    """

    success: bool
    value: T | None = None
    error: str | None = None
    error_code: str | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "Result[T]":
        """Create a successful result with an optional value."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: str | None = None, **details: Any) -> "Result[T]":
        """Create a failed result with an error message and optional error code."""
        return cls(success=False, error=error, error_code=code, details=details or None)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """
        Get the value, raising ValueError if the result is a failure.

        Raises:
            ValueError: If the result is a failure
        """
        if not self.success:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        return self.value  # type: ignore

    def unwrap_or(self, default: T) -> T:
        """Get the value or a default if the result is a failure."""
        return self.value if self.success else default  # type: ignore
