"""
Pari-mutuel payout domain service.

Pure arithmetic over bet rows; no storage access.
"""

from domain.models.market import POSITIONS, BetPayout, SettlementPlan


class PayoutService:
    """
    Computes pool odds, payout previews and settlement payouts.

    All settlement math is integer: each winning bet receives
    floor(amount * total_pool / winning_pool). Whatever floor rounding
    leaves behind is not redistributed.
    """

    def calculate_odds(self, total_yes: int, total_no: int) -> dict[str, float]:
        """
        Calculate pool multipliers for YES and NO.

        A multiplier is what one coin on that side returns if it wins.
        Sides with no stake report 0.
        """
        total = total_yes + total_no
        if total == 0:
            return {"yes": 0.0, "no": 0.0}
        return {
            "yes": round(total / total_yes, 2) if total_yes > 0 else 0.0,
            "no": round(total / total_no, 2) if total_no > 0 else 0.0,
        }

    def implied_probability(self, total_yes: int, total_no: int) -> dict[str, float]:
        total = total_yes + total_no
        if total == 0:
            return {"yes": 0.5, "no": 0.5}
        return {"yes": round(total_yes / total, 4), "no": round(total_no / total, 4)}

    def potential_payout(self, total_yes: int, total_no: int, position: str, amount: int) -> float:
        """
        Illustrative payout if a new bet of `amount` on `position` wins now.

        Computed against the pools as they would be right after the bet.
        """
        if position not in POSITIONS:
            raise ValueError(f"Invalid position: {position}")
        if amount <= 0:
            return 0.0
        pool_after = total_yes + total_no + amount
        same_side_after = (total_yes if position == "yes" else total_no) + amount
        return round(amount * (pool_after / same_side_after), 2)

    def payout_for(self, amount: int, total_pool: int, winning_pool: int) -> int:
        if winning_pool <= 0:
            return 0
        return (amount * total_pool) // winning_pool

    def plan_settlement(
        self,
        bets: list[dict],
        outcome: str,
        total_yes: int,
        total_no: int,
    ) -> SettlementPlan:
        """
        Build the settlement plan for a market.

        Args:
            bets: Bet rows with id, user_id, position, amount
            outcome: Winning position
            total_yes: Market yes pool
            total_no: Market no pool

        Returns:
            SettlementPlan with one payout per winning bet. Empty when the
            winning pool is zero.
        """
        if outcome not in POSITIONS:
            raise ValueError(f"Invalid outcome: {outcome}")

        total_pool = total_yes + total_no
        winning_pool = total_yes if outcome == "yes" else total_no

        payouts = []
        if winning_pool > 0:
            for bet in bets:
                if bet["position"] != outcome:
                    continue
                payouts.append(
                    BetPayout(
                        bet_id=bet["id"],
                        user_id=bet["user_id"],
                        amount=bet["amount"],
                        payout=self.payout_for(bet["amount"], total_pool, winning_pool),
                    )
                )

        return SettlementPlan(
            outcome=outcome,
            total_pool=total_pool,
            winning_pool=winning_pool,
            payouts=tuple(payouts),
        )
