"""
Service for disputing creator-resolved predictions.
"""

import logging

from config import DISPUTE_WINDOW_SECONDS
from repositories.interfaces import IDisputeRepository
from services.exceptions import ValidationError

logger = logging.getLogger("plottwist.services.dispute")

MAX_REASON_LENGTH = 500


class DisputeService:
    """
    Records dispute votes. Arbitration is manual: a dispute only flags the
    prediction and never changes balances or status.
    """

    def __init__(self, dispute_repo: IDisputeRepository, window_seconds: int | None = None):
        self.dispute_repo = dispute_repo
        self.window_seconds = window_seconds if window_seconds is not None else DISPUTE_WINDOW_SECONDS

    def dispute(self, prediction_id: int, user_id: int, vote: str, reason: str | None = None) -> dict:
        if reason is not None:
            reason = reason.strip() or None
            if reason and len(reason) > MAX_REASON_LENGTH:
                raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters")

        result = self.dispute_repo.add_dispute_atomic(
            prediction_id, user_id, vote, reason, self.window_seconds
        )
        logger.warning(
            f"Prediction {prediction_id} disputed by user {user_id} (vote {vote}); "
            f"tally yes={result['yes_votes']} no={result['no_votes']}"
        )
        return result

    def get_disputes(self, prediction_id: int) -> dict:
        return self.dispute_repo.get_disputes(prediction_id)
