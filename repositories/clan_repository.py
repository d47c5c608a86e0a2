"""
Repository for clans and clan membership.
"""

from __future__ import annotations

import sqlite3
import time

from repositories.base_repository import BaseRepository
from repositories.interfaces import IClanRepository
from services.exceptions import AlreadyInClan, ClanFull, NotFound, ValidationError


class ClanRepository(BaseRepository, IClanRepository):
    """
    Handles clans and clan_members tables.
    """

    def create_clan(
        self,
        creator_id: int,
        name: str,
        invite_code: str,
        description: str | None = None,
    ) -> dict:
        """Create a clan with the creator as its admin member."""
        now = int(time.time())
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT clan_id FROM clan_members WHERE user_id = ?", (creator_id,))
            if cursor.fetchone():
                raise AlreadyInClan()
            try:
                cursor.execute(
                    """
                    INSERT INTO clans (name, description, creator_id, invite_code, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (name, description, creator_id, invite_code, now),
                )
            except sqlite3.IntegrityError:
                raise ValidationError("A clan with that name already exists")
            clan_id = cursor.lastrowid
            cursor.execute(
                """
                INSERT INTO clan_members (user_id, clan_id, role, joined_at)
                VALUES (?, ?, 'admin', ?)
                """,
                (creator_id, clan_id, now),
            )
            return self._get_internal(cursor, clan_id)

    def _get_internal(self, cursor, clan_id: int) -> dict | None:
        cursor.execute(
            """
            SELECT c.*, COUNT(m.user_id) AS member_count
            FROM clans c
            LEFT JOIN clan_members m ON m.clan_id = c.id
            WHERE c.id = ?
            GROUP BY c.id
            """,
            (clan_id,),
        )
        row = cursor.fetchone()
        return dict(row) if row else None

    def get_clan(self, clan_id: int) -> dict | None:
        with self.connection() as conn:
            return self._get_internal(conn.cursor(), clan_id)

    def get_members(self, clan_id: int) -> list[dict]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT m.user_id, m.role, m.joined_at,
                       p.username, p.display_name, p.avatar_url, p.coins, p.reputation
                FROM clan_members m
                JOIN profiles p ON p.id = m.user_id
                WHERE m.clan_id = ?
                ORDER BY m.role = 'admin' DESC, p.reputation DESC, m.joined_at ASC
                """,
                (clan_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_user_clan_id(self, user_id: int) -> int | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT clan_id FROM clan_members WHERE user_id = ?", (user_id,))
            row = cursor.fetchone()
            return row["clan_id"] if row else None

    def join_by_invite_code(self, user_id: int, invite_code: str, max_members: int) -> dict:
        now = int(time.time())
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM clans WHERE invite_code = ?", (invite_code,))
            clan = cursor.fetchone()
            if not clan:
                raise NotFound("Invalid invite code")
            cursor.execute("SELECT clan_id FROM clan_members WHERE user_id = ?", (user_id,))
            if cursor.fetchone():
                raise AlreadyInClan()
            cursor.execute(
                "SELECT COUNT(*) AS n FROM clan_members WHERE clan_id = ?",
                (clan["id"],),
            )
            if cursor.fetchone()["n"] >= max_members:
                raise ClanFull("This clan is full")
            cursor.execute(
                """
                INSERT INTO clan_members (user_id, clan_id, role, joined_at)
                VALUES (?, ?, 'member', ?)
                """,
                (user_id, clan["id"], now),
            )
            return self._get_internal(cursor, clan["id"])

    def add_xp_for_user(self, user_id: int, xp: int, level_for_xp) -> dict | None:
        """
        Add XP to the user's clan and recompute its level.

        Args:
            user_id: Member whose activity earned the XP
            xp: Amount of XP to add
            level_for_xp: Callable mapping total XP to a level

        Returns:
            Updated clan row, or None if the user has no clan.
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT clan_id FROM clan_members WHERE user_id = ?", (user_id,))
            row = cursor.fetchone()
            if not row:
                return None
            clan_id = row["clan_id"]
            cursor.execute("UPDATE clans SET xp = xp + ? WHERE id = ?", (xp, clan_id))
            cursor.execute("SELECT xp, level FROM clans WHERE id = ?", (clan_id,))
            current = cursor.fetchone()
            new_level = level_for_xp(current["xp"])
            if new_level != current["level"]:
                cursor.execute("UPDATE clans SET level = ? WHERE id = ?", (new_level, clan_id))
            result = self._get_internal(cursor, clan_id)
            result["previous_level"] = current["level"]
            return result

    def get_leaderboard(self, limit: int = 50) -> list[dict]:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT c.id, c.name, c.description, c.xp, c.level,
                       COUNT(m.user_id) AS member_count,
                       COALESCE(SUM(p.reputation), 0) AS total_reputation,
                       COALESCE(SUM(p.coins), 0) AS total_coins
                FROM clans c
                LEFT JOIN clan_members m ON m.clan_id = c.id
                LEFT JOIN profiles p ON p.id = m.user_id
                GROUP BY c.id
                ORDER BY c.xp DESC, total_reputation DESC, c.id ASC
                LIMIT ?
                """,
                (limit,),
            )
            return [dict(row) for row in cursor.fetchall()]
