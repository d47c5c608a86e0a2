"""
Repository for the append-only coin ledger.
"""

from __future__ import annotations

from repositories.base_repository import BaseRepository
from repositories.interfaces import ILedgerRepository


class LedgerRepository(BaseRepository, ILedgerRepository):
    """
    Standalone credit/debit operations and ledger queries.

    Compound operations (bets, settlement, escrow) use the cursor-level
    primitives on BaseRepository inside their own transaction instead.
    """

    def credit(
        self,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
    ) -> int:
        with self.atomic_transaction() as conn:
            return self._credit(conn.cursor(), user_id, amount, tx_type, reference_id, description)

    def debit(
        self,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
    ) -> int:
        with self.atomic_transaction() as conn:
            return self._debit(conn.cursor(), user_id, amount, tx_type, reference_id, description)

    def get_transactions(self, user_id: int, limit: int = 50, offset: int = 0) -> list[dict]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM transactions
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (user_id, limit, offset),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_transactions_by_reference(self, tx_type: str, reference_id: int) -> list[dict]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM transactions WHERE type = ? AND reference_id = ? ORDER BY id",
                (tx_type, reference_id),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_ledger_snapshot(self, user_id: int) -> dict | None:
        """
        Read balance and ledger sum in one read transaction.

        Returns None if the user does not exist.
        """
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT p.coins AS balance,
                       (SELECT COALESCE(SUM(t.amount), 0) FROM transactions t
                        WHERE t.user_id = p.id) AS ledger_total,
                       (SELECT COUNT(*) FROM transactions t
                        WHERE t.user_id = p.id) AS transaction_count
                FROM profiles p
                WHERE p.id = ?
                """,
                (user_id,),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def find_inconsistent_users(self) -> list[dict]:
        """All profiles whose balance differs from their ledger sum."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT p.id AS user_id, p.coins AS balance,
                       COALESCE(SUM(t.amount), 0) AS ledger_total
                FROM profiles p
                LEFT JOIN transactions t ON t.user_id = p.id
                GROUP BY p.id
                HAVING p.coins != COALESCE(SUM(t.amount), 0)
                """
            )
            return [dict(row) for row in cursor.fetchall()]
