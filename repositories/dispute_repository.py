"""
Repository for disputes on creator-resolved predictions.
"""

from __future__ import annotations

import sqlite3
import time

from domain.models.market import MODE_UNOFFICIAL, POSITIONS, RESOLVED_STATUSES
from repositories.base_repository import BaseRepository
from repositories.interfaces import IDisputeRepository
from services.exceptions import (
    AlreadyDisputed,
    DisputeNotAllowed,
    DisputeWindowClosed,
    NotFound,
    ValidationError,
)


class DisputeRepository(BaseRepository, IDisputeRepository):
    """
    Handles the prediction_disputes table.

    Disputes are recorded votes only. They never move coins or change a
    prediction's status; they only raise its disputed flag.
    """

    def add_dispute_atomic(
        self,
        prediction_id: int,
        user_id: int,
        vote: str,
        reason: str | None,
        window_seconds: int,
    ) -> dict:
        if vote not in POSITIONS:
            raise ValidationError("Vote must be 'yes' or 'no'")

        now = int(time.time())

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute(
                "SELECT id, mode, status, resolved_at FROM predictions WHERE id = ?",
                (prediction_id,),
            )
            pred = cursor.fetchone()
            if not pred:
                raise NotFound("Prediction not found")
            if pred["mode"] != MODE_UNOFFICIAL:
                raise DisputeNotAllowed("Only unofficial predictions can be disputed")
            if pred["status"] not in RESOLVED_STATUSES:
                raise DisputeNotAllowed("Only resolved predictions can be disputed")
            if now > pred["resolved_at"] + window_seconds:
                raise DisputeWindowClosed()

            cursor.execute(
                "SELECT 1 FROM bets WHERE prediction_id = ? AND user_id = ? LIMIT 1",
                (prediction_id, user_id),
            )
            if not cursor.fetchone():
                raise DisputeNotAllowed("Only users who bet on this prediction can dispute it")

            try:
                cursor.execute(
                    """
                    INSERT INTO prediction_disputes (prediction_id, user_id, vote, reason, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (prediction_id, user_id, vote, reason, now),
                )
            except sqlite3.IntegrityError:
                raise AlreadyDisputed()

            cursor.execute("UPDATE predictions SET disputed = 1 WHERE id = ?", (prediction_id,))

            return {
                "prediction_id": prediction_id,
                "user_id": user_id,
                "vote": vote,
                "created_at": now,
                **self._get_vote_counts_internal(cursor, prediction_id),
            }

    def _get_vote_counts_internal(self, cursor, prediction_id: int) -> dict:
        cursor.execute(
            """
            SELECT
                COALESCE(SUM(CASE WHEN vote = 'yes' THEN 1 ELSE 0 END), 0) AS yes_votes,
                COALESCE(SUM(CASE WHEN vote = 'no' THEN 1 ELSE 0 END), 0) AS no_votes
            FROM prediction_disputes
            WHERE prediction_id = ?
            """,
            (prediction_id,),
        )
        return dict(cursor.fetchone())

    def get_disputes(self, prediction_id: int) -> dict:
        """All dispute votes for a prediction plus yes/no tallies."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT d.*, pr.username
                FROM prediction_disputes d
                LEFT JOIN profiles pr ON pr.id = d.user_id
                WHERE d.prediction_id = ?
                ORDER BY d.created_at ASC, d.id ASC
                """,
                (prediction_id,),
            )
            disputes = [dict(row) for row in cursor.fetchall()]
            return {"disputes": disputes, **self._get_vote_counts_internal(cursor, prediction_id)}
