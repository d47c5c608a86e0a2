"""
Repository for managing prediction market data.
"""

from __future__ import annotations

import time

from domain.models.market import (
    CHALLENGE_ACCEPTED,
    CHALLENGE_CANCELLED,
    CHALLENGE_PENDING,
    CHALLENGE_RESOLVED,
    MARKET_STATUSES,
    POSITIONS,
    RESOLVED_STATUSES,
    STATUS_ACTIVE,
    STATUS_CANCELLED,
    resolved_status,
)
from domain.services.payout_service import PayoutService
from repositories.base_repository import BaseRepository
from repositories.interfaces import IPredictionRepository
from services.exceptions import (
    AlreadyResolved,
    CreatorBetLimit,
    MarketClosed,
    MarketExpired,
    NotFound,
    ValidationError,
)

SORT_ORDERS = {
    "newest": "p.created_at DESC, p.id DESC",
    "trending": "p.total_pool DESC, p.created_at DESC, p.id DESC",
    "ending_soon": "p.deadline ASC, p.id ASC",
}


class PredictionRepository(BaseRepository, IPredictionRepository):
    """
    Handles predictions and bets, plus the settlement and cancellation
    transactions that touch challenges and the ledger.
    """

    VALID_POSITIONS = set(POSITIONS)
    VALID_STATUSES = set(MARKET_STATUSES)

    def __init__(self, db_path: str, payout_service: PayoutService | None = None):
        super().__init__(db_path)
        self.payout_service = payout_service or PayoutService()

    def create_prediction(
        self,
        creator_id: int,
        title: str,
        deadline: int,
        mode: str = "unofficial",
        visibility: str = "public",
        description: str | None = None,
        show_id: str | None = None,
        creator_bet_limit: int = 200,
    ) -> dict:
        """Create a new prediction and return it."""
        created_at = int(time.time())

        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO predictions (
                    title, description, show_id, creator_id, mode, visibility,
                    status, deadline, creator_bet_limit, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, 'active', ?, ?, ?)
                """,
                (
                    title,
                    description,
                    show_id,
                    creator_id,
                    mode,
                    visibility,
                    deadline,
                    creator_bet_limit,
                    created_at,
                ),
            )
            return self._get_internal(cursor, cursor.lastrowid)

    def _get_internal(self, cursor, prediction_id: int) -> dict | None:
        cursor.execute(
            """
            SELECT p.*, pr.username AS creator_username, pr.display_name AS creator_display_name
            FROM predictions p
            LEFT JOIN profiles pr ON pr.id = p.creator_id
            WHERE p.id = ?
            """,
            (prediction_id,),
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_prediction(self, prediction_id: int) -> dict | None:
        """Get a prediction by ID."""
        with self.connection() as conn:
            return self._get_internal(conn.cursor(), prediction_id)

    def list_predictions(
        self,
        viewer_id: int | None = None,
        status: str | None = None,
        show_id: str | None = None,
        sort: str = "newest",
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        """
        List predictions visible to the viewer.

        Private predictions are only listed for their creator. The
        ending_soon sort only returns active predictions whose deadline
        has not passed.
        """
        if sort not in SORT_ORDERS:
            raise ValidationError(f"Invalid sort: {sort}")
        if status is not None and status not in self.VALID_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        clauses = ["(p.visibility = 'public' OR p.creator_id = ?)"]
        params: list = [viewer_id if viewer_id is not None else -1]
        if status:
            clauses.append("p.status = ?")
            params.append(status)
        if show_id:
            clauses.append("p.show_id = ?")
            params.append(show_id)
        if sort == "ending_soon":
            clauses.append("p.status = 'active' AND p.deadline > ?")
            params.append(int(time.time()))

        query = f"""
            SELECT p.*, pr.username AS creator_username, pr.display_name AS creator_display_name,
                   (SELECT COUNT(*) FROM bets b WHERE b.prediction_id = p.id) AS bet_count
            FROM predictions p
            LEFT JOIN profiles pr ON pr.id = p.creator_id
            WHERE {' AND '.join(clauses)}
            ORDER BY {SORT_ORDERS[sort]}
            LIMIT ? OFFSET ?
        """
        params.extend([limit, offset])

        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def get_prediction_bets(self, prediction_id: int) -> list[dict]:
        """Get all bets for a prediction, oldest first."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT b.*, pr.username
                FROM bets b
                LEFT JOIN profiles pr ON pr.id = b.user_id
                WHERE b.prediction_id = ?
                ORDER BY b.created_at ASC, b.id ASC
                """,
                (prediction_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_user_bets(self, user_id: int, limit: int = 50) -> list[dict]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT b.*, p.title, p.status AS prediction_status
                FROM bets b
                JOIN predictions p ON p.id = b.prediction_id
                WHERE b.user_id = ?
                ORDER BY b.created_at DESC, b.id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            return [dict(row) for row in cursor.fetchall()]

    def has_bet_on(self, prediction_id: int, user_id: int) -> bool:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM bets WHERE prediction_id = ? AND user_id = ? LIMIT 1",
                (prediction_id, user_id),
            )
            return cursor.fetchone() is not None

    def _get_user_stake_internal(self, cursor, prediction_id: int, user_id: int) -> int:
        cursor.execute(
            "SELECT COALESCE(SUM(amount), 0) AS staked FROM bets WHERE prediction_id = ? AND user_id = ?",
            (prediction_id, user_id),
        )
        return int(cursor.fetchone()["staked"])

    def get_user_stake(self, prediction_id: int, user_id: int) -> int:
        with self.connection() as conn:
            return self._get_user_stake_internal(conn.cursor(), prediction_id, user_id)

    def place_bet_atomic(
        self, prediction_id: int, user_id: int, position: str, amount: int
    ) -> dict:
        """
        Place a bet atomically (insert bet, debit balance, grow pool).

        - Validates prediction is active and not past its deadline
        - Enforces the creator stake cap
        - Debits balance with a bet_placed transaction referencing the bet
        - Adds to the pool with a single in-database increment

        Returns bet info including new totals and balance.
        """
        if not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Bet amount must be a positive integer")
        if position not in self.VALID_POSITIONS:
            raise ValidationError("Position must be 'yes' or 'no'")

        now = int(time.time())

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute(
                "SELECT id, title, creator_id, status, deadline, creator_bet_limit "
                "FROM predictions WHERE id = ?",
                (prediction_id,),
            )
            pred = cursor.fetchone()
            if not pred:
                raise NotFound("Prediction not found")
            if pred["status"] != STATUS_ACTIVE:
                raise MarketClosed()
            if now >= pred["deadline"]:
                raise MarketExpired()

            if user_id == pred["creator_id"]:
                current = self._get_user_stake_internal(cursor, prediction_id, user_id)
                if current + amount > pred["creator_bet_limit"]:
                    raise CreatorBetLimit(max=pred["creator_bet_limit"], current=current)

            cursor.execute(
                """
                INSERT INTO bets (user_id, prediction_id, position, amount, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, prediction_id, position, amount, now),
            )
            bet_id = cursor.lastrowid

            new_balance = self._debit(
                cursor, user_id, amount, "bet_placed",
                reference_id=bet_id,
                description=f"Bet {position.upper()} on: {pred['title']}",
                now=now,
            )

            pool_column = "total_yes" if position == "yes" else "total_no"
            cursor.execute(
                f"""
                UPDATE predictions
                SET {pool_column} = {pool_column} + ?, total_pool = total_pool + ?
                WHERE id = ?
                """,
                (amount, amount, prediction_id),
            )

            totals = self._get_totals_internal(cursor, prediction_id)

            return {
                "bet": {
                    "id": bet_id,
                    "user_id": user_id,
                    "prediction_id": prediction_id,
                    "position": position,
                    "amount": amount,
                    "payout": None,
                    "created_at": now,
                },
                "new_balance": new_balance,
                **totals,
            }

    def _get_totals_internal(self, cursor, prediction_id: int) -> dict:
        """Get pool totals using existing cursor (for use in transactions)."""
        cursor.execute(
            "SELECT total_yes, total_no, total_pool FROM predictions WHERE id = ?",
            (prediction_id,),
        )
        row = cursor.fetchone()
        return {
            "total_yes": row["total_yes"],
            "total_no": row["total_no"],
            "total_pool": row["total_pool"],
        }

    def get_prediction_totals(self, prediction_id: int) -> dict:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN position = 'yes' THEN amount END), 0) AS bets_yes,
                    COALESCE(SUM(CASE WHEN position = 'no' THEN amount END), 0) AS bets_no,
                    COUNT(DISTINCT CASE WHEN position = 'yes' THEN user_id END) AS yes_bettors,
                    COUNT(DISTINCT CASE WHEN position = 'no' THEN user_id END) AS no_bettors
                FROM bets WHERE prediction_id = ?
                """,
                (prediction_id,),
            )
            counts = dict(cursor.fetchone())
            return {**self._get_totals_internal(cursor, prediction_id), **counts}

    def settle_prediction_atomic(
        self,
        prediction_id: int,
        outcome: str,
        resolved_by: int,
        reputation_per_win: int = 0,
        reputation_per_challenge_win: int = 0,
    ) -> dict:
        """
        Resolve a prediction and pay everything it owes in one transaction.

        - Winning bets get floor(amount * total_pool / winning_pool) as bet_won
        - Accepted challenges pay 2 * amount to the side matching the outcome
        - Pending challenges are cancelled and the challenger refunded
        - Status moves to resolved_{outcome}; a second call fails with
          AlreadyResolved because the status check runs under the write lock

        Returns payout summary.
        """
        if outcome not in self.VALID_POSITIONS:
            raise ValidationError("Outcome must be 'yes' or 'no'")

        now = int(time.time())

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute(
                "SELECT id, title, status, total_yes, total_no FROM predictions WHERE id = ?",
                (prediction_id,),
            )
            pred = cursor.fetchone()
            if not pred:
                raise NotFound("Prediction not found")
            if pred["status"] != STATUS_ACTIVE:
                raise AlreadyResolved()

            cursor.execute(
                "SELECT id, user_id, position, amount FROM bets WHERE prediction_id = ? ORDER BY id",
                (prediction_id,),
            )
            bets = [dict(row) for row in cursor.fetchall()]

            plan = self.payout_service.plan_settlement(
                bets, outcome, pred["total_yes"], pred["total_no"]
            )

            for bet_payout in plan.payouts:
                if bet_payout.payout <= 0:
                    continue
                self._credit(
                    cursor, bet_payout.user_id, bet_payout.payout, "bet_won",
                    reference_id=bet_payout.bet_id,
                    description=f"Won bet on: {pred['title']}",
                    now=now,
                )
                cursor.execute(
                    "UPDATE bets SET payout = ? WHERE id = ?",
                    (bet_payout.payout, bet_payout.bet_id),
                )

            if reputation_per_win > 0:
                for user_id in sorted(plan.winner_ids):
                    cursor.execute(
                        "UPDATE profiles SET reputation = reputation + ? WHERE id = ?",
                        (reputation_per_win, user_id),
                    )

            challenges = self._settle_challenges_internal(
                cursor, prediction_id, outcome, now, reputation_per_challenge_win
            )

            cursor.execute(
                """
                UPDATE predictions
                SET status = ?, resolved_at = ?, resolved_by = ?
                WHERE id = ? AND status = 'active'
                """,
                (resolved_status(outcome), now, resolved_by, prediction_id),
            )

            return {
                "prediction_id": prediction_id,
                "outcome": outcome,
                "status": resolved_status(outcome),
                "winners": len(plan.payouts),
                "total_paid": plan.total_paid,
                "total_pool": plan.total_pool,
                "winning_pool": plan.winning_pool,
                "dust": plan.dust,
                "winner_ids": sorted(plan.winner_ids),
                "payouts": [
                    {
                        "bet_id": p.bet_id,
                        "user_id": p.user_id,
                        "amount": p.amount,
                        "payout": p.payout,
                        "profit": p.profit,
                    }
                    for p in plan.payouts
                ],
                "challenges": challenges,
                "resolved_at": now,
            }

    def _settle_challenges_internal(
        self,
        cursor,
        prediction_id: int,
        outcome: str,
        now: int,
        reputation_per_win: int,
    ) -> dict:
        cursor.execute(
            """
            SELECT * FROM challenges
            WHERE prediction_id = ? AND status IN (?, ?)
            ORDER BY id
            """,
            (prediction_id, CHALLENGE_PENDING, CHALLENGE_ACCEPTED),
        )
        rows = [dict(row) for row in cursor.fetchall()]

        settled = []
        cancelled = []
        for challenge in rows:
            if challenge["status"] == CHALLENGE_ACCEPTED:
                if challenge["challenger_position"] == outcome:
                    winner_id = challenge["challenger_id"]
                else:
                    winner_id = challenge["challenged_id"]
                pot = challenge["amount"] * 2
                self._credit(
                    cursor, winner_id, pot, "challenge_won",
                    reference_id=challenge["id"],
                    description="Won challenge",
                    now=now,
                )
                if reputation_per_win > 0:
                    cursor.execute(
                        "UPDATE profiles SET reputation = reputation + ? WHERE id = ?",
                        (reputation_per_win, winner_id),
                    )
                cursor.execute(
                    """
                    UPDATE challenges SET status = ?, winner_id = ?, resolved_at = ?
                    WHERE id = ?
                    """,
                    (CHALLENGE_RESOLVED, winner_id, now, challenge["id"]),
                )
                settled.append({"challenge_id": challenge["id"], "winner_id": winner_id, "pot": pot})
            else:
                self._credit(
                    cursor, challenge["challenger_id"], challenge["amount"], "challenge_refund",
                    reference_id=challenge["id"],
                    description="Challenge expired unanswered",
                    now=now,
                )
                cursor.execute(
                    "UPDATE challenges SET status = ?, resolved_at = ? WHERE id = ?",
                    (CHALLENGE_CANCELLED, now, challenge["id"]),
                )
                cancelled.append(challenge["id"])

        return {
            "settled": settled,
            "cancelled": cancelled,
            "rows": self._fetch_challenges_internal(cursor, [c["id"] for c in rows]),
        }

    def _fetch_challenges_internal(self, cursor, challenge_ids: list[int]) -> list[dict]:
        if not challenge_ids:
            return []
        placeholders = ", ".join("?" for _ in challenge_ids)
        cursor.execute(
            f"SELECT * FROM challenges WHERE id IN ({placeholders}) ORDER BY id",
            challenge_ids,
        )
        return [dict(row) for row in cursor.fetchall()]

    def cancel_prediction_atomic(self, prediction_id: int, cancelled_by: int) -> dict:
        """
        Cancel an active prediction and refund every stake in one transaction.

        Bets are refunded in full as bet_refund. Escrowed challenge stakes go
        back to whoever paid them as challenge_refund.
        """
        now = int(time.time())

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute(
                "SELECT id, title, status FROM predictions WHERE id = ?",
                (prediction_id,),
            )
            pred = cursor.fetchone()
            if not pred:
                raise NotFound("Prediction not found")
            if pred["status"] != STATUS_ACTIVE:
                raise AlreadyResolved()

            cursor.execute(
                "SELECT id, user_id, amount FROM bets WHERE prediction_id = ? ORDER BY id",
                (prediction_id,),
            )
            bets = [dict(row) for row in cursor.fetchall()]

            total_refunded = 0
            refunded = []
            for bet in bets:
                self._credit(
                    cursor, bet["user_id"], bet["amount"], "bet_refund",
                    reference_id=bet["id"],
                    description=f"Refund: {pred['title']} was cancelled",
                    now=now,
                )
                total_refunded += bet["amount"]
                refunded.append({"bet_id": bet["id"], "user_id": bet["user_id"], "amount": bet["amount"]})

            cursor.execute(
                """
                SELECT * FROM challenges
                WHERE prediction_id = ? AND status IN (?, ?)
                ORDER BY id
                """,
                (prediction_id, CHALLENGE_PENDING, CHALLENGE_ACCEPTED),
            )
            challenges = [dict(row) for row in cursor.fetchall()]
            for challenge in challenges:
                payers = [challenge["challenger_id"]]
                if challenge["status"] == CHALLENGE_ACCEPTED:
                    payers.append(challenge["challenged_id"])
                for user_id in payers:
                    self._credit(
                        cursor, user_id, challenge["amount"], "challenge_refund",
                        reference_id=challenge["id"],
                        description="Challenge refunded: prediction cancelled",
                        now=now,
                    )
                cursor.execute(
                    "UPDATE challenges SET status = ?, resolved_at = ? WHERE id = ?",
                    (CHALLENGE_CANCELLED, now, challenge["id"]),
                )

            cursor.execute(
                """
                UPDATE predictions
                SET status = ?, resolved_at = ?, resolved_by = ?
                WHERE id = ? AND status = 'active'
                """,
                (STATUS_CANCELLED, now, cancelled_by, prediction_id),
            )

            return {
                "prediction_id": prediction_id,
                "status": STATUS_CANCELLED,
                "refunded_bets": len(refunded),
                "total_refunded": total_refunded,
                "refunded": refunded,
                "cancelled_challenges": [c["id"] for c in challenges],
                "challenge_rows": self._fetch_challenges_internal(
                    cursor, [c["id"] for c in challenges]
                ),
            }

    def get_user_prediction_stats(self, user_id: int) -> dict:
        """
        Get prediction betting stats for a user.

        Returns dict with total_bets, wins, losses, total_wagered, net_pnl, win_rate.
        Refunded bets on cancelled predictions count as neither win nor loss.
        """
        resolved = ", ".join(f"'{s}'" for s in RESOLVED_STATUSES)
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT
                    COUNT(*) AS total_bets,
                    COALESCE(SUM(b.amount), 0) AS total_wagered,
                    COALESCE(SUM(CASE WHEN b.payout IS NOT NULL THEN 1 ELSE 0 END), 0) AS wins,
                    COALESCE(SUM(CASE WHEN b.payout IS NULL AND p.status IN ({resolved}) THEN 1 ELSE 0 END), 0) AS losses,
                    COALESCE(SUM(CASE WHEN b.payout IS NOT NULL THEN b.payout - b.amount ELSE 0 END), 0) AS gross_profit,
                    COALESCE(SUM(CASE WHEN b.payout IS NULL AND p.status IN ({resolved}) THEN b.amount ELSE 0 END), 0) AS total_lost,
                    COALESCE(MAX(CASE WHEN b.payout IS NOT NULL THEN b.payout - b.amount END), 0) AS best_win
                FROM bets b
                JOIN predictions p ON b.prediction_id = p.id
                WHERE b.user_id = ?
                """,
                (user_id,),
            )
            stats = dict(cursor.fetchone())
            stats["net_pnl"] = stats["gross_profit"] - stats["total_lost"]
            decided = stats["wins"] + stats["losses"]
            stats["win_rate"] = round(stats["wins"] / decided, 4) if decided > 0 else 0.0
            cursor.execute(
                "SELECT COUNT(*) AS created FROM predictions WHERE creator_id = ?",
                (user_id,),
            )
            stats["predictions_created"] = cursor.fetchone()["created"]
            return stats
