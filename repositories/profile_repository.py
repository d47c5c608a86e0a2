"""
Repository for profiles and bearer tokens.
"""

from __future__ import annotations

import hashlib
import sqlite3
import time

from repositories.base_repository import BaseRepository
from repositories.interfaces import IProfileRepository
from services.exceptions import AlreadyClaimed, NotFound, UsernameTaken

PUBLIC_PROFILE_COLUMNS = (
    "id, username, display_name, avatar_url, coins, reputation, country, "
    "is_admin, last_daily_bonus, created_at"
)
EDITABLE_FIELDS = ("username", "display_name", "avatar_url", "country")


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class ProfileRepository(BaseRepository, IProfileRepository):
    """
    Handles profiles and auth_tokens tables.
    """

    def create_with_signup_bonus(
        self,
        username: str,
        signup_bonus: int,
        country: str | None = None,
        display_name: str | None = None,
        is_admin: bool = False,
    ) -> dict:
        """
        Create a profile and credit the signup bonus in one transaction.

        The profile starts at 0 coins so the bonus arrives through the ledger
        like every other balance change.
        """
        now = int(time.time())
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO profiles (username, display_name, country, is_admin, coins, created_at)
                    VALUES (?, ?, ?, ?, 0, ?)
                    """,
                    (username, display_name or username, country, 1 if is_admin else 0, now),
                )
            except sqlite3.IntegrityError:
                raise UsernameTaken("Username already taken")
            user_id = cursor.lastrowid
            if signup_bonus > 0:
                self._credit(
                    cursor, user_id, signup_bonus, "signup_bonus",
                    description="Welcome bonus", now=now,
                )
            return self._get_internal(cursor, user_id)

    def _get_internal(self, cursor, user_id: int) -> dict | None:
        cursor.execute(f"SELECT {PUBLIC_PROFILE_COLUMNS} FROM profiles WHERE id = ?", (user_id,))
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_by_id(self, user_id: int) -> dict | None:
        with self.connection() as conn:
            return self._get_internal(conn.cursor(), user_id)

    def get_by_username(self, username: str) -> dict | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {PUBLIC_PROFILE_COLUMNS} FROM profiles WHERE username = ?",
                (username,),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def exists(self, user_id: int) -> bool:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM profiles WHERE id = ?", (user_id,))
            return cursor.fetchone() is not None

    def update_profile(self, user_id: int, **fields) -> dict:
        """Update editable profile fields. Unknown or None fields are ignored."""
        updates = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS and v is not None}
        with self.connection() as conn:
            cursor = conn.cursor()
            if updates:
                assignments = ", ".join(f"{column} = ?" for column in updates)
                try:
                    cursor.execute(
                        f"UPDATE profiles SET {assignments} WHERE id = ?",
                        (*updates.values(), user_id),
                    )
                except sqlite3.IntegrityError:
                    raise UsernameTaken("Username already taken")
            profile = self._get_internal(cursor, user_id)
            if not profile:
                raise NotFound("User not found")
            return profile

    def set_admin(self, user_id: int, is_admin: bool) -> None:
        with self.connection() as conn:
            conn.execute(
                "UPDATE profiles SET is_admin = ? WHERE id = ?",
                (1 if is_admin else 0, user_id),
            )

    def get_balance(self, user_id: int) -> int:
        with self.connection() as conn:
            return self._balance_internal(conn.cursor(), user_id)

    def get_leaderboard(self, country: str | None = None, limit: int = 50) -> list[dict]:
        """Profiles ordered by reputation, optionally restricted to one country."""
        query = (
            "SELECT id, username, display_name, avatar_url, coins, reputation, country "
            "FROM profiles"
        )
        params: list = []
        if country:
            query += " WHERE country = ?"
            params.append(country)
        query += " ORDER BY reputation DESC, coins DESC, id ASC LIMIT ?"
        params.append(limit)
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def claim_daily_bonus_atomic(self, user_id: int, amount: int, cooldown_seconds: int) -> dict:
        """
        Credit the daily bonus if the cooldown since the last one has passed.

        The cooldown is keyed on the last daily_bonus transaction and checked
        inside the same write transaction as the credit.
        """
        now = int(time.time())
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT created_at FROM transactions
                WHERE user_id = ? AND type = 'daily_bonus'
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                (user_id,),
            )
            last = cursor.fetchone()
            if last and now - last["created_at"] < cooldown_seconds:
                next_claim_at = last["created_at"] + cooldown_seconds
                raise AlreadyClaimed(
                    "Daily bonus already claimed",
                    next_claim_at=next_claim_at,
                )

            new_balance = self._credit(
                cursor, user_id, amount, "daily_bonus",
                description="Daily login bonus", now=now,
            )
            cursor.execute(
                "UPDATE profiles SET last_daily_bonus = ? WHERE id = ?",
                (now, user_id),
            )
            return {
                "amount": amount,
                "new_balance": new_balance,
                "claimed_at": now,
                "next_claim_at": now + cooldown_seconds,
            }

    # --- Tokens ---

    def store_token(self, user_id: int, token: str) -> None:
        with self.connection() as conn:
            conn.execute(
                "INSERT INTO auth_tokens (token_hash, user_id, created_at) VALUES (?, ?, ?)",
                (hash_token(token), user_id, int(time.time())),
            )

    def get_by_token(self, token: str) -> dict | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id FROM auth_tokens WHERE token_hash = ?",
                (hash_token(token),),
            )
            row = cursor.fetchone()
            if not row:
                return None
            return self._get_internal(cursor, row["user_id"])

    def revoke_token(self, token: str) -> None:
        with self.connection() as conn:
            conn.execute("DELETE FROM auth_tokens WHERE token_hash = ?", (hash_token(token),))
