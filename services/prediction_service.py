"""
Handles prediction market business logic.
"""

import logging
import time
from typing import Any

from config import (
    ADMIN_USER_IDS,
    CREATOR_BET_LIMIT,
    MIN_PREDICTION_WINDOW_SECONDS,
    REPUTATION_PER_CHALLENGE_WIN,
    REPUTATION_PER_WIN,
)
from domain.models.market import MODE_OFFICIAL, MODES, POSITIONS, VISIBILITIES
from domain.services.payout_service import PayoutService
from repositories.interfaces import IPredictionRepository, IProfileRepository
from services.balance_validation import validate_amount, validate_can_spend
from services.event_feed import ChangeFeed
from services.exceptions import NotAuthorized, NotFound, ValidationError
from services.permissions import can_settle, is_admin
from utils.debug_logging import trace_settlement

logger = logging.getLogger("plottwist.services.prediction")

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
MAX_LIST_LIMIT = 100


class PredictionService:
    """
    Encapsulates prediction market operations:
    - Creating and listing predictions
    - Placing bets
    - Resolution and settlement
    - Cancellation with refunds
    """

    def __init__(
        self,
        prediction_repo: IPredictionRepository,
        profile_repo: IProfileRepository,
        admin_user_ids: list[int] | None = None,
        payout_service: PayoutService | None = None,
        clan_service=None,
        change_feed: ChangeFeed | None = None,
        creator_bet_limit: int | None = None,
        reputation_per_win: int | None = None,
        reputation_per_challenge_win: int | None = None,
    ):
        self.prediction_repo = prediction_repo
        self.profile_repo = profile_repo
        self.admin_user_ids = set(admin_user_ids if admin_user_ids is not None else ADMIN_USER_IDS)
        self.payout_service = payout_service or PayoutService()
        self.clan_service = clan_service
        self.change_feed = change_feed
        self.creator_bet_limit = (
            creator_bet_limit if creator_bet_limit is not None else CREATOR_BET_LIMIT
        )
        self.reputation_per_win = (
            reputation_per_win if reputation_per_win is not None else REPUTATION_PER_WIN
        )
        self.reputation_per_challenge_win = (
            reputation_per_challenge_win
            if reputation_per_challenge_win is not None
            else REPUTATION_PER_CHALLENGE_WIN
        )

    def _get_profile(self, user_id: int) -> dict:
        profile = self.profile_repo.get_by_id(user_id)
        if not profile:
            raise NotFound("User not found")
        return profile

    def _require_prediction(self, prediction_id: int) -> dict:
        pred = self.prediction_repo.get_prediction(prediction_id)
        if not pred:
            raise NotFound("Prediction not found")
        return pred

    def _with_market_view(self, pred: dict) -> dict:
        """Attach derived fields clients display next to a prediction."""
        now = int(time.time())
        return {
            **pred,
            "disputed": bool(pred.get("disputed")),
            "is_expired": pred["status"] == "active" and now >= pred["deadline"],
            "odds": self.payout_service.calculate_odds(pred["total_yes"], pred["total_no"]),
            "probability": self.payout_service.implied_probability(
                pred["total_yes"], pred["total_no"]
            ),
        }

    def create_prediction(
        self,
        creator_id: int,
        title: str,
        deadline: int,
        mode: str = "unofficial",
        visibility: str = "public",
        description: str | None = None,
        show_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a new prediction market.

        Args:
            creator_id: Profile ID of the creator
            title: The prediction question
            deadline: Unix timestamp after which bets are rejected
            mode: "official" (admin-resolved) or "unofficial" (creator-resolved)
            visibility: "public" or "private"
            description: Optional longer description
            show_id: Optional reference to the show/event

        Returns:
            The created prediction
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
        if description and len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError("Description is too long")
        if mode not in MODES:
            raise ValidationError("Mode must be 'official' or 'unofficial'")
        if visibility not in VISIBILITIES:
            raise ValidationError("Visibility must be 'public' or 'private'")

        now = int(time.time())
        if deadline <= now:
            raise ValidationError("Deadline must be in the future")
        if deadline - now < MIN_PREDICTION_WINDOW_SECONDS:
            raise ValidationError("Betting window must be at least 1 minute")

        creator = self._get_profile(creator_id)
        if mode == MODE_OFFICIAL and not is_admin(creator, self.admin_user_ids):
            raise NotAuthorized("Only admins can create official predictions")

        pred = self.prediction_repo.create_prediction(
            creator_id=creator_id,
            title=title,
            deadline=deadline,
            mode=mode,
            visibility=visibility,
            description=description,
            show_id=show_id,
            creator_bet_limit=self.creator_bet_limit,
        )
        logger.info(f"User {creator_id} created {mode} prediction {pred['id']}: {title}")
        return self._with_market_view(pred)

    def get_prediction(self, prediction_id: int, include_bets: bool = True) -> dict:
        pred = self._with_market_view(self._require_prediction(prediction_id))
        if include_bets:
            pred["bets"] = self.prediction_repo.get_prediction_bets(prediction_id)
        return pred

    def list_predictions(
        self,
        viewer_id: int | None = None,
        status: str | None = None,
        show_id: str | None = None,
        sort: str = "newest",
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        if limit <= 0 or limit > MAX_LIST_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}")
        if offset < 0:
            raise ValidationError("offset must not be negative")
        rows = self.prediction_repo.list_predictions(
            viewer_id=viewer_id,
            status=status,
            show_id=show_id,
            sort=sort,
            limit=limit,
            offset=offset,
        )
        return [self._with_market_view(row) for row in rows]

    def place_bet(
        self,
        prediction_id: int,
        user_id: int,
        position: str,
        amount: int,
    ) -> dict[str, Any]:
        """
        Place a bet on a prediction.

        Args:
            prediction_id: ID of the prediction
            user_id: Profile ID of the bettor
            position: "yes" or "no"
            amount: Amount to bet

        Returns:
            Dict with the bet, new pools, new balance, odds and an
            illustrative potential payout
        """
        amount_check = validate_amount(amount, label="Bet amount")
        if not amount_check:
            raise ValidationError(amount_check.error)
        if position not in POSITIONS:
            raise ValidationError("Position must be 'yes' or 'no'")

        result = self.prediction_repo.place_bet_atomic(
            prediction_id=prediction_id,
            user_id=user_id,
            position=position,
            amount=amount,
        )

        yes_before = result["total_yes"] - (amount if position == "yes" else 0)
        no_before = result["total_no"] - (amount if position == "no" else 0)
        result["odds"] = self.payout_service.calculate_odds(result["total_yes"], result["total_no"])
        result["potential_payout"] = self.payout_service.potential_payout(
            yes_before, no_before, position, amount
        )

        logger.info(
            f"User {user_id} bet {amount} {position} on prediction {prediction_id} "
            f"(pool {result['total_pool']})"
        )

        if self.clan_service:
            self.clan_service.on_bet_placed(user_id)
        if self.change_feed:
            self.change_feed.publish_insert("bets", result["bet"])

        return result

    def preview_payout(
        self,
        prediction_id: int,
        position: str,
        amount: int,
        user_id: int | None = None,
    ) -> dict[str, Any]:
        """
        What a bet would return if it won right now, without placing it.

        With a user_id the preview also says whether that user can afford
        the stake. Nothing is reserved; place_bet checks again.
        """
        amount_check = validate_amount(amount, label="Bet amount")
        if not amount_check:
            raise ValidationError(amount_check.error)
        if position not in POSITIONS:
            raise ValidationError("Position must be 'yes' or 'no'")

        pred = self._require_prediction(prediction_id)
        preview = {
            "prediction_id": prediction_id,
            "position": position,
            "amount": amount,
            "potential_payout": self.payout_service.potential_payout(
                pred["total_yes"], pred["total_no"], position, amount
            ),
            "can_afford": None,
            "balance_after": None,
        }
        if user_id is not None:
            spend = validate_can_spend(self.profile_repo, user_id, amount)
            preview["can_afford"] = spend.success
            preview["balance_after"] = spend.value if spend else None
        return preview

    def resolve(
        self,
        prediction_id: int,
        outcome: str,
        resolved_by: int,
    ) -> dict[str, Any]:
        """
        Resolve a prediction and settle all bets and challenges.

        Args:
            prediction_id: ID of the prediction
            outcome: "yes" or "no"
            resolved_by: Profile ID of the user resolving

        Returns:
            Dict with winners (count), total_paid and settlement details

        Raises:
            NotAuthorized: Caller may not resolve this prediction
            AlreadyResolved: Prediction is no longer active
        """
        if outcome not in POSITIONS:
            raise ValidationError("Outcome must be 'yes' or 'no'")

        pred = self._require_prediction(prediction_id)
        caller = self._get_profile(resolved_by)
        if not can_settle(pred, caller, self.admin_user_ids):
            if pred["mode"] == MODE_OFFICIAL:
                raise NotAuthorized("Only admins can resolve official predictions")
            raise NotAuthorized("Only the creator can resolve this prediction")

        settlement = self.prediction_repo.settle_prediction_atomic(
            prediction_id=prediction_id,
            outcome=outcome,
            resolved_by=resolved_by,
            reputation_per_win=self.reputation_per_win,
            reputation_per_challenge_win=self.reputation_per_challenge_win,
        )

        logger.info(
            f"Prediction {prediction_id} resolved {outcome} by {resolved_by}: "
            f"{settlement['winners']} winning bets, paid {settlement['total_paid']} "
            f"of {settlement['total_pool']} (dust {settlement['dust']})"
        )
        trace_settlement(
            "resolved",
            prediction_id,
            {
                "outcome": outcome,
                "resolved_by": resolved_by,
                "total_pool": settlement["total_pool"],
                "total_paid": settlement["total_paid"],
                "dust": settlement["dust"],
                "payouts": settlement["payouts"],
            },
        )

        if self.clan_service:
            for user_id in settlement["winner_ids"]:
                self.clan_service.on_bet_won(user_id)
        if self.change_feed:
            for challenge in settlement["challenges"]["rows"]:
                self.change_feed.publish_update("challenges", challenge)
            self.change_feed.publish_update(
                "predictions",
                {"id": prediction_id, "status": settlement["status"], "creator_id": pred["creator_id"]},
            )

        return settlement

    def cancel(self, prediction_id: int, cancelled_by: int) -> dict[str, Any]:
        """
        Cancel a prediction and refund all bets and escrowed challenge stakes.

        Same authority as resolution.
        """
        pred = self._require_prediction(prediction_id)
        caller = self._get_profile(cancelled_by)
        if not can_settle(pred, caller, self.admin_user_ids):
            raise NotAuthorized("You cannot cancel this prediction")

        result = self.prediction_repo.cancel_prediction_atomic(prediction_id, cancelled_by)
        logger.info(
            f"Prediction {prediction_id} cancelled by {cancelled_by}: "
            f"refunded {result['total_refunded']} across {result['refunded_bets']} bets"
        )
        trace_settlement(
            "cancelled",
            prediction_id,
            {"cancelled_by": cancelled_by, "total_refunded": result["total_refunded"]},
        )
        if self.change_feed:
            for challenge in result["challenge_rows"]:
                self.change_feed.publish_update("challenges", challenge)
            self.change_feed.publish_update(
                "predictions",
                {"id": prediction_id, "status": result["status"], "creator_id": pred["creator_id"]},
            )
        return result

    def get_prediction_totals(self, prediction_id: int) -> dict:
        self._require_prediction(prediction_id)
        return self.prediction_repo.get_prediction_totals(prediction_id)
