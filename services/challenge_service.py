"""
Service for head-to-head challenges.
"""

import logging

from domain.models.market import POSITIONS
from repositories.interfaces import IChallengeRepository
from services.balance_validation import validate_amount
from services.event_feed import ChangeFeed
from services.exceptions import NotFound, ValidationError

logger = logging.getLogger("plottwist.services.challenge")


class ChallengeService:
    """
    Challenge escrow: create, accept and decline.

    Settlement of accepted challenges happens inside prediction resolution.
    """

    def __init__(self, challenge_repo: IChallengeRepository, change_feed: ChangeFeed | None = None):
        self.challenge_repo = challenge_repo
        self.change_feed = change_feed

    def create_challenge(
        self,
        challenger_id: int,
        challenged_id: int,
        prediction_id: int,
        position: str,
        amount: int,
    ) -> dict:
        """
        Challenge another user, escrowing the stake immediately.

        Returns:
            Dict with the challenge and the challenger's new balance
        """
        amount_check = validate_amount(amount, label="Challenge amount")
        if not amount_check:
            raise ValidationError(amount_check.error)
        if position not in POSITIONS:
            raise ValidationError("Position must be 'yes' or 'no'")
        if challenger_id == challenged_id:
            raise ValidationError("You cannot challenge yourself")

        result = self.challenge_repo.create_challenge_atomic(
            challenger_id=challenger_id,
            challenged_id=challenged_id,
            prediction_id=prediction_id,
            position=position,
            amount=amount,
        )
        challenge = result["challenge"]
        logger.info(
            f"User {challenger_id} challenged {challenged_id} for {amount} "
            f"on prediction {prediction_id} (challenge {challenge['id']})"
        )
        if self.change_feed:
            self.change_feed.publish_insert("challenges", challenge)
        return result

    def accept_challenge(self, challenge_id: int, user_id: int) -> dict:
        result = self.challenge_repo.accept_challenge_atomic(challenge_id, user_id)
        logger.info(f"User {user_id} accepted challenge {challenge_id}")
        if self.change_feed:
            self.change_feed.publish_update("challenges", result["challenge"])
        return result

    def decline_challenge(self, challenge_id: int, user_id: int) -> dict:
        result = self.challenge_repo.decline_challenge_atomic(challenge_id, user_id)
        logger.info(
            f"User {user_id} declined challenge {challenge_id}, "
            f"refunded {result['refunded']} to challenger"
        )
        if self.change_feed:
            self.change_feed.publish_update("challenges", result["challenge"])
        return result

    def get_challenge(self, challenge_id: int) -> dict:
        challenge = self.challenge_repo.get_challenge(challenge_id)
        if not challenge:
            raise NotFound("Challenge not found")
        return challenge

    def get_user_challenges(self, user_id: int, status: str | None = None) -> list[dict]:
        return self.challenge_repo.get_user_challenges(user_id, status=status)
