"""
Repository for head-to-head challenges and their escrow.
"""

from __future__ import annotations

import time

from domain.models.market import (
    CHALLENGE_ACCEPTED,
    CHALLENGE_DECLINED,
    CHALLENGE_PENDING,
    POSITIONS,
    STATUS_ACTIVE,
    opposite_position,
)
from repositories.base_repository import BaseRepository
from repositories.interfaces import IChallengeRepository
from services.exceptions import (
    AlreadyResponded,
    MarketClosed,
    MarketExpired,
    NotAuthorized,
    NotFound,
    ValidationError,
)


class ChallengeRepository(BaseRepository, IChallengeRepository):
    """
    Handles the challenges table.

    Every state change that moves coins (create, accept, decline) runs in
    one transaction with its ledger entry.
    """

    def _check_market_open(self, cursor, prediction_id: int, now: int) -> dict:
        cursor.execute(
            "SELECT id, title, status, deadline FROM predictions WHERE id = ?",
            (prediction_id,),
        )
        pred = cursor.fetchone()
        if not pred:
            raise NotFound("Prediction not found")
        if pred["status"] != STATUS_ACTIVE:
            raise MarketClosed()
        if now >= pred["deadline"]:
            raise MarketExpired()
        return dict(pred)

    def create_challenge_atomic(
        self,
        challenger_id: int,
        challenged_id: int,
        prediction_id: int,
        position: str,
        amount: int,
    ) -> dict:
        """
        Create a pending challenge and escrow the challenger's stake.

        The challenged side is always assigned the opposite position.
        """
        if not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Challenge amount must be a positive integer")
        if position not in POSITIONS:
            raise ValidationError("Position must be 'yes' or 'no'")
        if challenger_id == challenged_id:
            raise ValidationError("You cannot challenge yourself")

        now = int(time.time())

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT username FROM profiles WHERE id = ?", (challenged_id,))
            if not cursor.fetchone():
                raise NotFound("Challenged user not found")

            self._check_market_open(cursor, prediction_id, now)

            cursor.execute(
                """
                INSERT INTO challenges (
                    challenger_id, challenged_id, prediction_id,
                    challenger_position, challenged_position, amount, status, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    challenger_id,
                    challenged_id,
                    prediction_id,
                    position,
                    opposite_position(position),
                    amount,
                    CHALLENGE_PENDING,
                    now,
                ),
            )
            challenge_id = cursor.lastrowid

            new_balance = self._debit(
                cursor, challenger_id, amount, "challenge_sent",
                reference_id=challenge_id,
                description="Challenge sent",
                now=now,
            )

            challenge = self._get_internal(cursor, challenge_id)
            return {"challenge": challenge, "new_balance": new_balance}

    def _get_internal(self, cursor, challenge_id: int) -> dict | None:
        cursor.execute(
            """
            SELECT c.*,
                   p.title AS prediction_title,
                   a.username AS challenger_username,
                   b.username AS challenged_username
            FROM challenges c
            LEFT JOIN predictions p ON p.id = c.prediction_id
            LEFT JOIN profiles a ON a.id = c.challenger_id
            LEFT JOIN profiles b ON b.id = c.challenged_id
            WHERE c.id = ?
            """,
            (challenge_id,),
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_challenge(self, challenge_id: int) -> dict | None:
        with self.connection() as conn:
            return self._get_internal(conn.cursor(), challenge_id)

    def _get_for_response(self, cursor, challenge_id: int, user_id: int) -> dict:
        cursor.execute("SELECT * FROM challenges WHERE id = ?", (challenge_id,))
        row = cursor.fetchone()
        if not row:
            raise NotFound("Challenge not found")
        challenge = dict(row)
        if challenge["challenged_id"] != user_id:
            raise NotAuthorized("Not your challenge")
        if challenge["status"] != CHALLENGE_PENDING:
            raise AlreadyResponded()
        return challenge

    def accept_challenge_atomic(self, challenge_id: int, user_id: int) -> dict:
        """Accept a pending challenge, escrowing the challenged user's stake."""
        now = int(time.time())

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            challenge = self._get_for_response(cursor, challenge_id, user_id)
            self._check_market_open(cursor, challenge["prediction_id"], now)

            new_balance = self._debit(
                cursor, user_id, challenge["amount"], "challenge_accepted",
                reference_id=challenge_id,
                description="Challenge accepted",
                now=now,
            )
            cursor.execute(
                """
                UPDATE challenges SET status = ?, responded_at = ?
                WHERE id = ? AND status = ?
                """,
                (CHALLENGE_ACCEPTED, now, challenge_id, CHALLENGE_PENDING),
            )
            return {"challenge": self._get_internal(cursor, challenge_id), "new_balance": new_balance}

    def decline_challenge_atomic(self, challenge_id: int, user_id: int) -> dict:
        """Decline a pending challenge and refund the challenger."""
        now = int(time.time())

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            challenge = self._get_for_response(cursor, challenge_id, user_id)

            challenger_balance = self._credit(
                cursor, challenge["challenger_id"], challenge["amount"], "challenge_refund",
                reference_id=challenge_id,
                description="Challenge declined - refund",
                now=now,
            )
            cursor.execute(
                """
                UPDATE challenges SET status = ?, responded_at = ?
                WHERE id = ? AND status = ?
                """,
                (CHALLENGE_DECLINED, now, challenge_id, CHALLENGE_PENDING),
            )
            return {
                "challenge": self._get_internal(cursor, challenge_id),
                "refunded": challenge["amount"],
                "challenger_balance": challenger_balance,
            }

    def get_user_challenges(self, user_id: int, status: str | None = None) -> list[dict]:
        """Challenges the user sent or received, newest first."""
        query = """
            SELECT c.*,
                   p.title AS prediction_title,
                   a.username AS challenger_username,
                   b.username AS challenged_username
            FROM challenges c
            LEFT JOIN predictions p ON p.id = c.prediction_id
            LEFT JOIN profiles a ON a.id = c.challenger_id
            LEFT JOIN profiles b ON b.id = c.challenged_id
            WHERE (c.challenger_id = ? OR c.challenged_id = ?)
        """
        params: list = [user_id, user_id]
        if status:
            query += " AND c.status = ?"
            params.append(status)
        query += " ORDER BY c.created_at DESC, c.id DESC"
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def get_prediction_challenges(self, prediction_id: int) -> list[dict]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM challenges WHERE prediction_id = ? ORDER BY id",
                (prediction_id,),
            )
            return [dict(row) for row in cursor.fetchall()]
