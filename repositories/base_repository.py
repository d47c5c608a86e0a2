"""
Base repository with common database operations.
"""

import logging
import sqlite3
import time
from abc import ABC
from contextlib import contextmanager

from database import Database
from services.exceptions import InsufficientFunds, NotFound, ValidationError

logger = logging.getLogger("plottwist.repositories")

TRANSACTION_TYPES = {
    "signup_bonus",
    "daily_bonus",
    "bet_placed",
    "bet_won",
    "bet_refund",
    "challenge_sent",
    "challenge_accepted",
    "challenge_won",
    "challenge_refund",
}


class BaseRepository(ABC):
    """
    Base class for all repositories.

    Provides common database connection management and the ledger
    primitives every balance-changing repository composes.
    """

    # Track DB paths that have already had schema initialization performed
    _schema_initialized_paths = set()

    def __init__(self, db_path: str):
        """
        Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        # Ensure schema is initialized for this database path (idempotent)
        if db_path not in BaseRepository._schema_initialized_paths:
            Database(db_path)
            BaseRepository._schema_initialized_paths.add(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory enabled."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def connection(self):
        """
        Context manager for database connections.

        Automatically commits on success, rolls back on exception,
        and always closes the connection.
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def atomic_transaction(self):
        """
        Context manager for atomic transactions with immediate write lock.

        Uses BEGIN IMMEDIATE to acquire the write lock before the first read,
        so a balance or pool read inside the block cannot go stale before the
        matching write.

        Usage:
            with self.atomic_transaction() as conn:
                cursor = conn.cursor()
                cursor.execute(...)

        The transaction commits on success and rolls back on exception.
        """
        conn = self.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def cursor(self):
        """
        Context manager that yields a cursor with automatic connection management.
        """
        with self.connection() as conn:
            yield conn.cursor()

    # --- Ledger primitives (call inside atomic_transaction) ---

    def _insert_transaction(
        self,
        cursor,
        user_id: int,
        tx_type: str,
        amount: int,
        reference_id: int | None,
        description: str | None,
        created_at: int,
    ) -> int:
        if tx_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type: {tx_type}")
        cursor.execute(
            """
            INSERT INTO transactions (user_id, type, amount, reference_id, description, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, tx_type, amount, reference_id, description, created_at),
        )
        return cursor.lastrowid

    def _credit(
        self,
        cursor,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
        now: int | None = None,
    ) -> int:
        """Add coins and record the paired transaction. Returns the new balance."""
        if not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Amount must be a positive integer")
        cursor.execute(
            "UPDATE profiles SET coins = coins + ? WHERE id = ?",
            (amount, user_id),
        )
        if cursor.rowcount == 0:
            raise NotFound("User not found")
        self._insert_transaction(
            cursor, user_id, tx_type, amount, reference_id, description,
            now if now is not None else int(time.time()),
        )
        return self._balance_internal(cursor, user_id)

    def _debit(
        self,
        cursor,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
        now: int | None = None,
    ) -> int:
        """
        Remove coins and record the paired transaction. Returns the new balance.

        The balance guard lives in the UPDATE itself, so a debit can never
        take coins below zero even if the caller skipped its own check.
        """
        if not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Amount must be a positive integer")
        cursor.execute(
            "UPDATE profiles SET coins = coins - ? WHERE id = ? AND coins >= ?",
            (amount, user_id, amount),
        )
        if cursor.rowcount == 0:
            cursor.execute("SELECT coins FROM profiles WHERE id = ?", (user_id,))
            row = cursor.fetchone()
            if not row:
                raise NotFound("User not found")
            raise InsufficientFunds(balance=row["coins"], required=amount)
        self._insert_transaction(
            cursor, user_id, tx_type, -amount, reference_id, description,
            now if now is not None else int(time.time()),
        )
        return self._balance_internal(cursor, user_id)

    def _balance_internal(self, cursor, user_id: int) -> int:
        cursor.execute("SELECT coins FROM profiles WHERE id = ?", (user_id,))
        row = cursor.fetchone()
        if not row:
            raise NotFound("User not found")
        return int(row["coins"])
