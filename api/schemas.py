"""Pydantic request and response schemas for the REST API."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from services.balance_validation import MAX_AMOUNT

Position = Literal["yes", "no"]


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


# ============================================================================
# Requests
# ============================================================================


class RegisterRequest(BaseSchema):
    username: str
    display_name: Optional[str] = None
    country: Optional[str] = None


class UpdateProfileRequest(BaseSchema):
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    country: Optional[str] = None


class CreatePredictionRequest(BaseSchema):
    title: str
    description: Optional[str] = None
    show_id: Optional[str] = None
    mode: Literal["official", "unofficial"] = "unofficial"
    visibility: Literal["public", "private"] = "public"
    deadline: int = Field(description="Unix timestamp (seconds) or ISO-8601 datetime")

    @field_validator("deadline", mode="before")
    @classmethod
    def _parse_deadline(cls, value):
        if isinstance(value, str) and not value.strip().isdigit():
            return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
        if isinstance(value, datetime):
            return int(value.timestamp())
        return value


class PlaceBetRequest(BaseSchema):
    position: Position
    amount: int = Field(gt=0, le=MAX_AMOUNT)


class ResolveRequest(BaseSchema):
    outcome: Position


class DisputeRequest(BaseSchema):
    vote: Position
    reason: Optional[str] = None


class CreateChallengeRequest(BaseSchema):
    challenged_id: int
    prediction_id: int
    position: Position
    amount: int = Field(gt=0, le=MAX_AMOUNT)


class CreateClanRequest(BaseSchema):
    name: str
    description: Optional[str] = None


# ============================================================================
# Responses
# ============================================================================


class ErrorResponse(BaseSchema):
    error: str
    code: Optional[str] = None


class ProfileResponse(BaseSchema):
    id: int
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    coins: int
    reputation: int
    country: Optional[str] = None
    is_admin: bool = False
    last_daily_bonus: Optional[int] = None
    created_at: int


class RegisterResponse(BaseSchema):
    profile: ProfileResponse
    token: str


class LeaderboardEntry(BaseSchema):
    id: int
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    coins: int
    reputation: int
    country: Optional[str] = None


class TransactionResponse(BaseSchema):
    id: int
    user_id: int
    type: str
    amount: int
    reference_id: Optional[int] = None
    description: Optional[str] = None
    created_at: int


class ReconcileResponse(BaseSchema):
    user_id: int
    balance: int
    ledger_total: int
    transaction_count: int
    consistent: bool


class DailyBonusResponse(BaseSchema):
    amount: int
    new_balance: int
    claimed_at: int
    next_claim_at: int


class DailyBonusStatusResponse(BaseSchema):
    can_claim: bool
    amount: int
    next_claim_at: Optional[int] = None
    error: Optional[str] = None
    code: Optional[str] = None


class UserStatsResponse(BaseSchema):
    user_id: int
    username: str
    coins: int
    reputation: int
    total_bets: int = 0
    total_wagered: int = 0
    wins: int = 0
    losses: int = 0
    net_pnl: int = 0
    best_win: int = 0
    win_rate: float = 0.0
    predictions_created: int = 0


class BetResponse(BaseSchema):
    id: int
    user_id: int
    prediction_id: int
    position: Position
    amount: int
    payout: Optional[int] = None
    created_at: int
    username: Optional[str] = None


class Odds(BaseSchema):
    yes: float
    no: float


class PredictionResponse(BaseSchema):
    id: int
    title: str
    description: Optional[str] = None
    show_id: Optional[str] = None
    creator_id: int
    creator_username: Optional[str] = None
    mode: str
    visibility: str
    status: str
    deadline: int
    creator_bet_limit: int
    total_yes: int
    total_no: int
    total_pool: int
    disputed: bool = False
    created_at: int
    resolved_at: Optional[int] = None
    resolved_by: Optional[int] = None
    is_expired: bool = False
    bet_count: Optional[int] = None
    odds: Odds
    probability: Odds


class PredictionDetailResponse(PredictionResponse):
    bets: list[BetResponse] = []


class PlaceBetResponse(BaseSchema):
    bet: BetResponse
    new_balance: int
    total_yes: int
    total_no: int
    total_pool: int
    odds: Odds
    potential_payout: float


class BetPreviewResponse(BaseSchema):
    prediction_id: int
    position: Position
    amount: int
    potential_payout: float
    can_afford: Optional[bool] = None
    balance_after: Optional[int] = None


class PayoutEntry(BaseSchema):
    bet_id: int
    user_id: int
    amount: int
    payout: int
    profit: int


class ResolveResponse(BaseSchema):
    prediction_id: int
    outcome: Position
    status: str
    winners: int
    total_paid: int
    total_pool: int
    winning_pool: int
    dust: int
    payouts: list[PayoutEntry] = []
    resolved_at: int


class CancelResponse(BaseSchema):
    prediction_id: int
    status: str
    refunded_bets: int
    total_refunded: int
    cancelled_challenges: list[int] = []


class DisputeEntry(BaseSchema):
    id: int
    prediction_id: int
    user_id: int
    username: Optional[str] = None
    vote: Position
    reason: Optional[str] = None
    created_at: int


class DisputeResponse(BaseSchema):
    prediction_id: int
    user_id: int
    vote: Position
    created_at: int
    yes_votes: int
    no_votes: int


class DisputeListResponse(BaseSchema):
    disputes: list[DisputeEntry]
    yes_votes: int
    no_votes: int


class ChallengeResponse(BaseSchema):
    id: int
    challenger_id: int
    challenged_id: int
    prediction_id: int
    challenger_position: Position
    challenged_position: Position
    amount: int
    status: str
    winner_id: Optional[int] = None
    created_at: int
    responded_at: Optional[int] = None
    resolved_at: Optional[int] = None
    prediction_title: Optional[str] = None
    challenger_username: Optional[str] = None
    challenged_username: Optional[str] = None


class ChallengeActionResponse(BaseSchema):
    challenge: ChallengeResponse
    new_balance: Optional[int] = None
    refunded: Optional[int] = None


class ClanMemberResponse(BaseSchema):
    user_id: int
    role: str
    joined_at: int
    username: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    coins: int
    reputation: int


class ClanResponse(BaseSchema):
    id: int
    name: str
    description: Optional[str] = None
    creator_id: Optional[int] = None
    invite_code: Optional[str] = None
    xp: int
    level: int
    level_name: str
    next_level_xp: Optional[int] = None
    member_count: int
    created_at: Optional[int] = None
    total_reputation: Optional[int] = None
    total_coins: Optional[int] = None
    members: Optional[list[ClanMemberResponse]] = None


class HealthResponse(BaseSchema):
    status: str
    timestamp: int
    service: str
    version: str
