"""
Market, bet and challenge value types.
"""

from dataclasses import dataclass

POSITIONS = ("yes", "no")

MODE_OFFICIAL = "official"
MODE_UNOFFICIAL = "unofficial"
MODES = (MODE_OFFICIAL, MODE_UNOFFICIAL)

VISIBILITIES = ("public", "private")

STATUS_ACTIVE = "active"
STATUS_RESOLVED_YES = "resolved_yes"
STATUS_RESOLVED_NO = "resolved_no"
STATUS_CANCELLED = "cancelled"
MARKET_STATUSES = (STATUS_ACTIVE, STATUS_RESOLVED_YES, STATUS_RESOLVED_NO, STATUS_CANCELLED)
RESOLVED_STATUSES = (STATUS_RESOLVED_YES, STATUS_RESOLVED_NO)

CHALLENGE_PENDING = "pending"
CHALLENGE_ACCEPTED = "accepted"
CHALLENGE_DECLINED = "declined"
CHALLENGE_RESOLVED = "resolved"
CHALLENGE_CANCELLED = "cancelled"


def opposite_position(position: str) -> str:
    """Return the complementary side of a yes/no position."""
    if position not in POSITIONS:
        raise ValueError(f"Invalid position: {position}")
    return "no" if position == "yes" else "yes"


def resolved_status(outcome: str) -> str:
    if outcome not in POSITIONS:
        raise ValueError(f"Invalid outcome: {outcome}")
    return f"resolved_{outcome}"


def outcome_of(status: str) -> str | None:
    """Return 'yes'/'no' for a resolved status, otherwise None."""
    if status in RESOLVED_STATUSES:
        return status.split("_", 1)[1]
    return None


@dataclass(frozen=True)
class BetPayout:
    """Computed payout for one winning bet."""

    bet_id: int
    user_id: int
    amount: int
    payout: int

    @property
    def profit(self) -> int:
        return self.payout - self.amount


@dataclass(frozen=True)
class SettlementPlan:
    """Result of applying the pari-mutuel rule to a market's bets."""

    outcome: str
    total_pool: int
    winning_pool: int
    payouts: tuple[BetPayout, ...]

    @property
    def total_paid(self) -> int:
        return sum(p.payout for p in self.payouts)

    @property
    def dust(self) -> int:
        """Coins left unallocated by floor rounding. Burned at settlement."""
        if self.winning_pool == 0:
            return 0
        return self.total_pool - self.total_paid

    @property
    def winner_ids(self) -> set[int]:
        return {p.user_id for p in self.payouts}
